"""HTTP client helper."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import aiohttp
from yarl import URL

from ...models import RawResponse

DOWNLOAD_CHUNK_SIZE = 64 * 1024


def build_form(fields: Mapping[str, Any]) -> aiohttp.FormData:
    """Build a multipart form; ``Path`` values become file parts."""
    form = aiohttp.FormData()
    for name, value in fields.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if isinstance(item, Path):
                form.add_field(name, item.read_bytes(), filename=item.name)
            elif isinstance(item, bool):
                form.add_field(name, "true" if item else "false")
            else:
                form.add_field(name, str(item))
    return form


class HTTPClient:
    """Async HTTP client wrapper returning transport-neutral responses."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.default_headers = dict(headers or {})
        self._session: aiohttp.ClientSession | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout, headers=self.default_headers)
        return self._session

    def _url(self, url: str) -> URL:
        # If base_url is set and url is relative, combine them
        if self.base_url and not url.startswith("http"):
            url = f"{self.base_url}{url}"
        # Query terms arrive percent-encoded; keep %2B and friends intact
        return URL(url, encoded=True)

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: Any = None,
        form: Mapping[str, Any] | None = None,
        outfile: str | None = None,
    ) -> RawResponse:
        """Send a request.

        Args:
            method: HTTP method
            url: Absolute URL, or a path relative to ``base_url``
            headers: Request headers
            data: Raw body (bytes, str, or a mapping sent form-encoded)
            form: Multipart form fields (takes precedence over ``data``)
            outfile: Stream a successful body to this path instead of memory

        Raises:
            aiohttp.ClientError: On connection or protocol failure
            asyncio.TimeoutError: On timeout
        """
        payload = build_form(form) if form else data
        async with self.session.request(method, self._url(url), headers=headers, data=payload) as response:
            if outfile and 200 <= response.status < 300:
                with open(outfile, "wb") as handle:
                    async for chunk in response.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
                        handle.write(chunk)
                body = b""
            else:
                body = await response.read()
            return RawResponse(
                status=response.status,
                headers=dict(response.headers),
                body=body,
                url=str(response.url),
            )

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
