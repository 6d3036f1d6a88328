"""Request descriptor value object.

A descriptor is a fully-resolved representation of exactly one HTTP call.
The batch planner and the pagination loop never mutate a descriptor; they
derive new ones with ``dataclasses.replace`` and the helpers below, which
change only the query suffix or the body.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import quote


@dataclass(frozen=True)
class RequestDescriptor:
    """Ready-to-send HTTP request.

    Attributes:
        operation: Catalog id of the logical operation
        path: Absolute URL without query string
        method: Upper-case HTTP method
        headers: Request headers (authorization is added at dispatch time)
        query: Ordered, encoded ``key=value`` terms
        body: Structured body, raw array, bytes, or None
        formdata: Multipart form fields
        outfile: Absolute destination path for downloaded content
        read_only: Whether the call bypasses the confirmation gate
        all: Follow pagination until every result is retrieved
        detailed: Replace returned ids with a follow-up detail fetch
        total: Emit the server-reported total instead of records
        detail_operation: Catalog id of the "get by id" operation
        batch_index: Position of this descriptor within its batch
    """

    operation: str
    path: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    query: tuple[str, ...] = ()
    body: Any = None
    formdata: dict[str, Any] | None = None
    outfile: str | None = None
    read_only: bool = True
    all: bool = False
    detailed: bool = False
    total: bool = False
    detail_operation: str | None = None
    batch_index: int = 0

    @property
    def url(self) -> str:
        """Absolute URL including the query string."""
        if not self.query:
            return self.path
        return f"{self.path}?{'&'.join(self.query)}"

    @property
    def content_type(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None

    def query_value(self, name: str) -> str | None:
        """Return the first raw value for ``name`` on the query string."""
        prefix = f"{name}="
        for term in self.query:
            if term.startswith(prefix):
                return term[len(prefix) :]
        return None

    def with_query_param(self, name: str, value: Any) -> RequestDescriptor:
        """Clone with ``name=value`` replacing the existing term, or appended."""
        prefix = f"{name}="
        term = f"{prefix}{quote(str(value), safe='')}"
        terms = list(self.query)
        for index, existing in enumerate(terms):
            if existing.startswith(prefix):
                terms[index] = term
                break
        else:
            terms.append(term)
        return replace(self, query=tuple(terms))

    def with_headers(self, headers: Mapping[str, str]) -> RequestDescriptor:
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=merged)
