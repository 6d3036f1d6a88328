"""Custom exception hierarchy."""

from __future__ import annotations


class EngineError(Exception):
    """Base exception for all engine errors."""

    pass


class CompilationError(EngineError):
    """Caller input does not satisfy an operation's Format constraints.

    Raised before any request is sent, so nothing is partially applied.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class CatalogError(EngineError):
    """Operation is unknown or registered twice in the endpoint catalog."""

    pass


class TransportError(EngineError):
    """Network or connection failure for a single request."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class CredentialError(EngineError):
    """An authorization credential could not be obtained or refreshed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(EngineError):
    """Server-side rate limit hit while no cooldown could be applied."""

    def __init__(self, message: str, retry_after: float = 1.0) -> None:
        super().__init__(message)
        self.status_code = 429
        self.retry_after = retry_after
