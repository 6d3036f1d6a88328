"""Rate-limit guard applying a cooldown after throttled responses.

The guard inspects every response. On HTTP 429 it parses the retry-after
header and blocks the current invocation for that long, so the next
descriptor is not sent before the server is ready. The throttled call
itself is not reissued.
"""

from __future__ import annotations

import asyncio
import logging
import time
from urllib.parse import urlsplit

from ..core.config import EngineConfig
from ..core.protocols import SleepFn
from ..models import RawResponse, RequestDescriptor

logger = logging.getLogger(__name__)

RETRY_AFTER_HEADERS = ("X-RateLimit-RetryAfter", "Retry-After")

# Header values above this are epoch timestamps, not durations
_EPOCH_THRESHOLD = 1_000_000_000


def parse_retry_after(value: str | None, now: float | None = None) -> float | None:
    """Parse a retry-after header value into seconds to wait.

    Returns:
        Non-negative wait in seconds, or None if the value is not numeric
    """
    if value is None:
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    if number > _EPOCH_THRESHOLD:
        number -= now if now is not None else time.time()
    return max(number, 0.0)


class RateLimitGuard:
    """Sleeps after throttled responses before the next dispatch."""

    def __init__(self, config: EngineConfig | None = None, sleep: SleepFn | None = None) -> None:
        self._config = config or EngineConfig()
        self._sleep = sleep or asyncio.sleep
        self.cooldowns = 0

    def retry_after(self, response: RawResponse) -> float:
        for header in RETRY_AFTER_HEADERS:
            wait = parse_retry_after(response.header(header))
            if wait is not None:
                return wait
        return self._config.default_retry_after

    def is_exempt(self, descriptor: RequestDescriptor) -> bool:
        """Credential refresh calls are never throttled by the guard."""
        return urlsplit(descriptor.path).path.rstrip("/").endswith(self._config.token_path.rstrip("/"))

    async def observe(self, descriptor: RequestDescriptor, response: RawResponse) -> float:
        """Apply a cooldown if ``response`` was throttled.

        Returns:
            Seconds slept (0.0 when no cooldown applied)
        """
        if response.status != 429 or self.is_exempt(descriptor):
            return 0.0
        wait = self.retry_after(response)
        logger.warning(
            "rate_limit_cooldown",
            extra={
                "operation": descriptor.operation,
                "batch_index": descriptor.batch_index,
                "retry_after": wait,
            },
        )
        self.cooldowns += 1
        if wait > 0:
            await self._sleep(wait)
        return wait
