"""Shared fakes for engine tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from opwire.engine.models import RawResponse, RequestDescriptor


def _json_response(payload: Any, status: int = 200, headers: dict[str, str] | None = None) -> RawResponse:
    return RawResponse(
        status=status,
        headers=headers if headers is not None else {"Content-Type": "application/json"},
        body=json.dumps(payload).encode("utf-8"),
    )


class FakeTransport:
    """Transport that records descriptors and replays canned responses.

    ``responses`` is either a list consumed in order or a callable mapping a
    descriptor to a response. Exceptions in the list are raised.
    """

    def __init__(self, responses: list[Any] | Callable[[RequestDescriptor], RawResponse]) -> None:
        self._responses = responses
        self.sent: list[RequestDescriptor] = []
        self.closed = False

    async def invoke(self, descriptor: RequestDescriptor) -> RawResponse:
        self.sent.append(descriptor)
        if callable(self._responses):
            return self._responses(descriptor)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class FakeSleep:
    """Records requested sleeps instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def json_response() -> Callable[..., RawResponse]:
    """Factory building a JSON RawResponse."""
    return _json_response


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    """Factory building a FakeTransport."""
    return FakeTransport


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()
