"""Compiled content bundle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Content:
    """Output of one compilation pass.

    Attributes:
        query: Ordered ``key=value`` strings, already percent-encoded
        body: JSON object, bare JSON array, or raw bytes for file uploads
        formdata: Multipart form fields
        outfile: Absolute local path for downloaded content
    """

    query: list[str] = field(default_factory=list)
    body: dict[str, Any] | list[Any] | bytes | None = None
    formdata: dict[str, Any] | None = None
    outfile: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.query and self.body is None and not self.formdata and self.outfile is None

    @property
    def is_binary(self) -> bool:
        return isinstance(self.body, bytes)
