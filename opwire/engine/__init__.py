"""opwire engine - declarative REST operation compiler and dispatcher."""

from .auth import OAuth2TokenProvider, StaticTokenProvider
from .catalog import EndpointCatalog, EndpointSpec, get_catalog, register_endpoint
from .core import (
    CatalogError,
    CompilationError,
    CredentialError,
    EngineConfig,
    EngineError,
    EventKind,
    FieldRule,
    Format,
    PaginationMechanism,
    RateLimitError,
    Slot,
    TransportError,
)
from .io import HTTPClient, LocalPathResolver, RESTTransport
from .models import (
    ApiError,
    Content,
    FileInfo,
    OperationResult,
    PaginationMeta,
    RawResponse,
    RequestDescriptor,
    ResultEvent,
)
from .runtime import (
    BatchPlanner,
    BatchPolicy,
    ContentCompiler,
    Dispatcher,
    Engine,
    PaginationLoop,
    RateLimitGuard,
    ResponseNormalizer,
)
from .sinks import InMemorySink

__version__ = "0.1.0"

__all__ = [
    # Engine
    "Engine",
    "EngineConfig",
    # Catalog
    "EndpointCatalog",
    "EndpointSpec",
    "FieldRule",
    "Format",
    "get_catalog",
    "register_endpoint",
    # Components
    "BatchPlanner",
    "BatchPolicy",
    "ContentCompiler",
    "Dispatcher",
    "PaginationLoop",
    "RateLimitGuard",
    "ResponseNormalizer",
    # Collaborators
    "HTTPClient",
    "InMemorySink",
    "LocalPathResolver",
    "OAuth2TokenProvider",
    "RESTTransport",
    "StaticTokenProvider",
    # Models
    "ApiError",
    "Content",
    "FileInfo",
    "OperationResult",
    "PaginationMeta",
    "RawResponse",
    "RequestDescriptor",
    "ResultEvent",
    # Enums
    "EventKind",
    "PaginationMechanism",
    "Slot",
    # Exceptions
    "CatalogError",
    "CompilationError",
    "CredentialError",
    "EngineError",
    "RateLimitError",
    "TransportError",
]
