"""I/O layer: REST transport and local path resolution."""

from .paths import LocalPathResolver
from .rest import HTTPClient, RESTTransport

__all__ = ["HTTPClient", "LocalPathResolver", "RESTTransport"]
