"""Narrow interfaces to the engine's external collaborators.

Architecture:
    The engine depends on a transport, a credential provider, a path
    resolver, an optional confirmation gate and an optional event sink.
    Each is a Protocol so any object with the right methods works; the
    package ships default implementations in ``io.rest``, ``auth`` and
    ``sinks``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, Union

if TYPE_CHECKING:
    from ..models import RawResponse, RequestDescriptor, ResultEvent


class Transport(Protocol):
    """Performs the actual HTTP call for one descriptor."""

    async def invoke(self, descriptor: RequestDescriptor) -> RawResponse:
        """Send the request.

        Raises:
            TransportError: On network or connection failure
        """
        ...

    async def close(self) -> None: ...


class CredentialProvider(Protocol):
    """Supplies a valid bearer credential before each request.

    Implementations must be safe to call from concurrent invocations and
    treat refresh as idempotent.
    """

    async def ensure_valid(self) -> str: ...


class PathResolver(Protocol):
    """Resolves caller-supplied paths for upload and download operations."""

    def resolve(self, path: str) -> str:
        """Return the absolute local path for ``path``."""
        ...

    def is_file(self, path: str) -> bool: ...


class ConfirmationGate(Protocol):
    """Approves or declines a single mutating request."""

    async def confirm(self, descriptor: RequestDescriptor) -> bool: ...


class ResultSink(Protocol):
    """Side-channel destination that receives every emitted event."""

    async def publish(self, event: ResultEvent) -> None: ...

    async def close(self) -> None: ...


# Plain callables are accepted wherever a ConfirmationGate is
ConfirmCallable = Callable[["RequestDescriptor"], Union[bool, Awaitable[bool]]]
ConfirmLike = Union[ConfirmationGate, ConfirmCallable]

SleepFn = Callable[[float], Awaitable[Any]]
