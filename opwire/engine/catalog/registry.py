"""Endpoint catalog mapping logical operations to endpoint specs.

The EndpointCatalog centralizes, per logical operation, the Format
descriptor, HTTP method and path, batch and page-size limits, and the
capability flags the dispatcher consults.

Architecture:
    This module implements the Registry pattern. Wrapper code registers one
    ``EndpointSpec`` per operation at startup; the engine looks specs up by
    id for every invocation and for detail follow-ups.

Design Decisions:
    - Frozen specs: a spec and its Format are shared read-only by the core
    - Explicit capability flags instead of path-pattern heuristics
    - Singleton accessor for convenience, injection for testing

See Also:
    - Format: Field-mapping contract carried by each spec
    - Engine: Resolves operations through the catalog
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from ..core.exceptions import CatalogError
from ..core.format import Format


@dataclass(frozen=True)
class EndpointSpec:
    """Declarative description of one logical operation.

    Attributes:
        id: Operation name, unique within a catalog
        method: HTTP method
        path: Path suffix appended to the configured host
        format: Field-mapping contract
        max_batch_size: Per-request id ceiling (None derives one from id length)
        max_page_size: Largest page the endpoint accepts for ``limit``
        content_type: Content type for structured bodies
        accept: Accept header value
        read_only: Overrides the method-based confirmation decision
        returns_full_detail: Responses already carry full records
        detail_operation: Operation used to fetch full records by id
    """

    id: str
    method: str
    path: str
    format: Format = field(default_factory=Format)
    max_batch_size: int | None = None
    max_page_size: int | None = None
    content_type: str = "application/json"
    accept: str = "application/json"
    read_only: bool | None = None
    returns_full_detail: bool = False
    detail_operation: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        if self.max_batch_size is not None and self.max_batch_size < 1:
            raise ValueError("max_batch_size must be positive")
        if self.max_page_size is not None and self.max_page_size < 1:
            raise ValueError("max_page_size must be positive")

    @property
    def supports_detail_fetch(self) -> bool:
        return self.detail_operation is not None and not self.returns_full_detail


class EndpointCatalog:
    """Registry of endpoint specs keyed by operation id."""

    def __init__(self, specs: Iterable[EndpointSpec] | None = None) -> None:
        self._specs: dict[str, EndpointSpec] = {}
        for spec in specs or ():
            self.register(spec)

    def register(self, spec: EndpointSpec) -> EndpointSpec:
        """Register a spec.

        Raises:
            CatalogError: If the operation id is already registered
        """
        if spec.id in self._specs:
            raise CatalogError(f"Operation '{spec.id}' is already registered")
        self._specs[spec.id] = spec
        return spec

    def get(self, operation: str) -> EndpointSpec:
        """Look up a spec by operation id.

        Raises:
            CatalogError: If the operation is unknown
        """
        try:
            return self._specs[operation]
        except KeyError:
            raise CatalogError(f"Unknown operation '{operation}'") from None

    def unregister(self, operation: str) -> None:
        self._specs.pop(operation, None)

    def __contains__(self, operation: object) -> bool:
        return operation in self._specs

    def __iter__(self) -> Iterator[EndpointSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)


_default_catalog: EndpointCatalog | None = None


def get_catalog() -> EndpointCatalog:
    """Return the process-wide default catalog, creating it on first use."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = EndpointCatalog()
    return _default_catalog


def register_endpoint(spec: EndpointSpec) -> EndpointSpec:
    """Register a spec in the default catalog."""
    return get_catalog().register(spec)
