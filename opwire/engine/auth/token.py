"""Credential providers supplying bearer tokens to the dispatcher.

Architecture:
    The dispatcher calls ``ensure_valid()`` before every request. Providers
    decide whether the cached token is still usable; the OAuth2 provider
    refreshes when no token exists or the known expiry falls within the
    refresh window.

Design Decisions:
    - Refresh is serialized with an asyncio.Lock so concurrent invocations
      sharing one provider trigger a single refresh
    - The token call is exempt from the rate-limit guard; a 429 here is
      raised as RateLimitError
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

import aiohttp

from ..core.exceptions import CredentialError, RateLimitError
from ..io.rest.http_client import HTTPClient
from ..runtime.rate_limit import parse_retry_after

logger = logging.getLogger(__name__)


class StaticTokenProvider:
    """Returns a fixed bearer token."""

    def __init__(self, token: str) -> None:
        if not token:
            raise CredentialError("Token must be a non-empty string")
        self._token = token

    async def ensure_valid(self) -> str:
        return self._token


class OAuth2TokenProvider:
    """OAuth2 client-credentials token holder.

    Args:
        host: API host the token endpoint lives on
        client_id: OAuth2 client id
        client_secret: OAuth2 client secret
        member_cid: Optional child tenant to authenticate into
        token_path: Path of the token endpoint
        refresh_window: Seconds before expiry at which to refresh
        http: HTTP client (created on demand when omitted)
        clock: Time source returning epoch seconds
    """

    def __init__(
        self,
        host: str,
        client_id: str,
        client_secret: str,
        *,
        member_cid: str | None = None,
        token_path: str = "/oauth2/token",
        refresh_window: float = 60.0,
        http: HTTPClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._url = f"{host.rstrip('/')}{token_path}"
        self._client_id = client_id
        self._client_secret = client_secret
        self._member_cid = member_cid
        self._refresh_window = refresh_window
        self._http = http or HTTPClient()
        self._owns_http = http is None
        self._clock = clock
        self._lock = asyncio.Lock()
        self._token: str | None = None
        self._expires_at: float = 0.0

    @property
    def expires_at(self) -> float:
        return self._expires_at

    def needs_refresh(self) -> bool:
        return self._token is None or self._expires_at - self._clock() <= self._refresh_window

    async def ensure_valid(self) -> str:
        """Return a valid token, refreshing it first if needed.

        Raises:
            CredentialError: If the token endpoint rejects the request
            RateLimitError: If the token endpoint is throttling
        """
        if self.needs_refresh():
            async with self._lock:
                # Another invocation may have refreshed while we waited
                if self.needs_refresh():
                    await self._refresh()
        if self._token is None:
            raise CredentialError("No access token available")
        return self._token

    async def _refresh(self) -> None:
        form = {"client_id": self._client_id, "client_secret": self._client_secret}
        if self._member_cid:
            form["member_cid"] = self._member_cid
        headers = {"Accept": "application/json"}
        try:
            response = await self._http.request("POST", self._url, headers=headers, data=form)
        except (aiohttp.ClientError, TimeoutError, OSError) as exc:
            raise CredentialError(f"Token request failed: {exc}") from exc

        if response.status == 429:
            wait = parse_retry_after(response.header("X-RateLimit-RetryAfter") or response.header("Retry-After"))
            raise RateLimitError("Token endpoint rate limit exceeded", retry_after=wait or 1.0)
        if not response.ok:
            raise CredentialError(
                f"Token request rejected with status {response.status}", status_code=response.status
            )

        try:
            payload = response.json()
            token = payload["access_token"]
        except (ValueError, KeyError, TypeError) as exc:
            raise CredentialError("Token response did not contain an access_token") from exc

        expires_in = float(payload.get("expires_in", 0) or 0)
        self._token = token
        self._expires_at = self._clock() + expires_in
        logger.info("token_refreshed", extra={"expires_in": expires_in})

    def invalidate(self) -> None:
        """Drop the cached token so the next call refreshes."""
        self._token = None
        self._expires_at = 0.0

    async def close(self) -> None:
        if self._owns_http:
            await self._http.close()
