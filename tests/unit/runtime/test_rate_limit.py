"""Unit tests for RateLimitGuard."""

from __future__ import annotations

import pytest

from opwire.engine.core import EngineConfig
from opwire.engine.models import RawResponse, RequestDescriptor
from opwire.engine.runtime import RateLimitGuard, parse_retry_after


def _descriptor(path: str = "https://api.example.com/devices/queries/v1") -> RequestDescriptor:
    return RequestDescriptor(operation="query_devices", path=path)


class TestParseRetryAfter:
    """Test retry-after header parsing."""

    def test_seconds(self):
        assert parse_retry_after("5") == 5.0

    def test_epoch_timestamp(self):
        assert parse_retry_after("1700000010", now=1700000000.0) == 10.0

    def test_epoch_in_past_clamped(self):
        assert parse_retry_after("1700000000", now=1700000100.0) == 0.0

    def test_non_numeric(self):
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") is None
        assert parse_retry_after(None) is None


class TestRateLimitGuard:
    """Test cooldown behavior."""

    @pytest.mark.asyncio
    async def test_429_sleeps_retry_after(self, fake_sleep):
        """A 429 with retry-after 5 blocks for at least 5 seconds."""
        guard = RateLimitGuard(EngineConfig(), sleep=fake_sleep)
        response = RawResponse(status=429, headers={"X-RateLimit-RetryAfter": "5"})

        waited = await guard.observe(_descriptor(), response)

        assert waited >= 5
        assert fake_sleep.calls == [5.0]
        assert guard.cooldowns == 1

    @pytest.mark.asyncio
    async def test_standard_retry_after_header(self, fake_sleep):
        guard = RateLimitGuard(EngineConfig(), sleep=fake_sleep)
        await guard.observe(_descriptor(), RawResponse(status=429, headers={"retry-after": "2"}))
        assert fake_sleep.calls == [2.0]

    @pytest.mark.asyncio
    async def test_missing_header_uses_default(self, fake_sleep):
        guard = RateLimitGuard(EngineConfig(default_retry_after=3.0), sleep=fake_sleep)
        await guard.observe(_descriptor(), RawResponse(status=429))
        assert fake_sleep.calls == [3.0]

    @pytest.mark.asyncio
    async def test_success_does_not_sleep(self, fake_sleep):
        guard = RateLimitGuard(EngineConfig(), sleep=fake_sleep)
        waited = await guard.observe(_descriptor(), RawResponse(status=200))
        assert waited == 0.0
        assert fake_sleep.calls == []
        assert guard.cooldowns == 0

    @pytest.mark.asyncio
    async def test_token_path_exempt(self, fake_sleep):
        guard = RateLimitGuard(EngineConfig(), sleep=fake_sleep)
        descriptor = _descriptor("https://api.example.com/oauth2/token")
        assert guard.is_exempt(descriptor)
        await guard.observe(descriptor, RawResponse(status=429, headers={"Retry-After": "5"}))
        assert fake_sleep.calls == []
