"""REST transport implementing the engine's Transport interface."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from ...core.config import EngineConfig
from ...core.exceptions import TransportError
from ...models import RawResponse, RequestDescriptor
from .http_client import HTTPClient

logger = logging.getLogger(__name__)


class RESTTransport:
    """Sends request descriptors over aiohttp.

    Connection failures and timeouts are raised as TransportError so the
    dispatcher can report them per descriptor.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        user_agent: str | None = None,
        http: HTTPClient | None = None,
    ) -> None:
        headers = {"User-Agent": user_agent} if user_agent else None
        self._http = http or HTTPClient(base_url=base_url, timeout=timeout, headers=headers)

    @classmethod
    def from_config(cls, config: EngineConfig) -> RESTTransport:
        """Build a transport from an EngineConfig."""
        return cls(base_url=config.host, timeout=config.timeout, user_agent=config.user_agent)

    async def invoke(self, descriptor: RequestDescriptor) -> RawResponse:
        try:
            return await self._http.request(
                descriptor.method,
                descriptor.url,
                headers=descriptor.headers,
                data=descriptor.body,
                form=descriptor.formdata,
                outfile=descriptor.outfile,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            logger.debug(
                "transport_error",
                extra={"url": descriptor.url, "error_type": type(exc).__name__},
            )
            message = str(exc) or type(exc).__name__
            raise TransportError(message, url=descriptor.url) from exc

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> RESTTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
