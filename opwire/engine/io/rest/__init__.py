"""REST transport layer."""

from .http_client import HTTPClient, build_form
from .transport import RESTTransport

__all__ = ["HTTPClient", "RESTTransport", "build_form"]
