"""Core enumerations shared by the compiler, planner and dispatcher.

Architecture:
    These enums replace string matching at the seams of the engine. The
    Format descriptor resolves every logical field to a ``Slot`` once, the
    pagination loop selects a ``PaginationMechanism`` from the response
    envelope, and every item leaving the engine is tagged with an
    ``EventKind``.

Design Decisions:
    - String enums: values serialize cleanly into logs and sink payloads
    - Control flags are plain field names, listed in CONTROL_FLAGS
"""

from __future__ import annotations

from enum import Enum


class Slot(str, Enum):
    """Where a logical field lands in the compiled request."""

    QUERY = "query"
    BODY = "body"
    FORMDATA = "formdata"
    OUTFILE = "outfile"


class PaginationMechanism(str, Enum):
    """Pagination styles understood by the pagination loop."""

    OFFSET = "offset"
    AFTER = "after"
    NEXT_TOKEN = "next_token"
    # Non-numeric "offset" values are opaque tokens sent back as offset=
    OFFSET_TOKEN = "offset_token"

    @property
    def query_param(self) -> str:
        """Query-string parameter that carries this mechanism's cursor."""
        if self in (PaginationMechanism.OFFSET, PaginationMechanism.OFFSET_TOKEN):
            return "offset"
        return self.value


class EventKind(str, Enum):
    """Kinds of items emitted on the engine's output stream."""

    RECORD = "record"
    ERROR = "error"
    FILE = "file"
    TOTAL = "total"


# Body root target name
ROOT = "root"

# Root body field that turns the body into a bare JSON array
RAW_ARRAY = "raw_array"

# Flags consumed by the engine rather than compiled into content
CONTROL_FLAGS = ("all", "detailed", "total")

# Array-valued identifier fields eligible for batch splitting, in priority order
SPLIT_FIELDS = ("ids", "samples")

DEFAULT_READ_ONLY_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
