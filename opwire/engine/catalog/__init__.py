"""Endpoint catalog."""

from .registry import EndpointCatalog, EndpointSpec, get_catalog, register_endpoint

__all__ = ["EndpointCatalog", "EndpointSpec", "get_catalog", "register_endpoint"]
