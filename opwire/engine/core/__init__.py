"""Core types: enums, exceptions, configuration, Format and protocols."""

from .config import EngineConfig
from .enums import (
    CONTROL_FLAGS,
    RAW_ARRAY,
    ROOT,
    SPLIT_FIELDS,
    EventKind,
    PaginationMechanism,
    Slot,
)
from .exceptions import (
    CatalogError,
    CompilationError,
    CredentialError,
    EngineError,
    RateLimitError,
    TransportError,
)
from .format import FieldBinding, FieldRule, Format
from .protocols import (
    ConfirmationGate,
    ConfirmLike,
    CredentialProvider,
    PathResolver,
    ResultSink,
    SleepFn,
    Transport,
)

__all__ = [
    # Config
    "EngineConfig",
    # Enums
    "CONTROL_FLAGS",
    "EventKind",
    "PaginationMechanism",
    "RAW_ARRAY",
    "ROOT",
    "SPLIT_FIELDS",
    "Slot",
    # Exceptions
    "CatalogError",
    "CompilationError",
    "CredentialError",
    "EngineError",
    "RateLimitError",
    "TransportError",
    # Format
    "FieldBinding",
    "FieldRule",
    "Format",
    # Protocols
    "ConfirmationGate",
    "ConfirmLike",
    "CredentialProvider",
    "PathResolver",
    "ResultSink",
    "SleepFn",
    "Transport",
]
