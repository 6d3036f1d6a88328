"""Result models emitted by the engine.

Architecture:
    Every item leaving the engine is a ``ResultEvent`` tagged with an
    ``EventKind``. Records are whatever JSON value the normalizer extracted;
    errors, downloaded files and totals carry typed payloads. Consumers that
    want a single summary use ``OperationResult.from_events``.

Design Decisions:
    - Pydantic v2 frozen models for typed payloads (ApiError, FileInfo)
    - Frozen dataclass for the event envelope, like the streaming events
    - Errors travel alongside records; nothing is dropped
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from ..core.enums import EventKind


class ApiError(BaseModel):
    """Structured error reported for one request or envelope entry."""

    code: int | str | None = None
    message: str
    trace_id: str | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"{self.code}: {self.message}"


class FileInfo(BaseModel):
    """Downloaded file reported in place of parsed JSON."""

    path: str
    size: int
    modified: datetime

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class PaginationMeta:
    """Pagination block extracted from ``meta.pagination``."""

    offset: int | str | None = None
    after: str | None = None
    next_token: str | None = None
    total: int | None = None
    limit: int | None = None

    @property
    def has_cursor(self) -> bool:
        return bool(self.after) or bool(self.next_token) or self.offset is not None


@dataclass(frozen=True)
class ResultEvent:
    """One item on the engine's output stream."""

    kind: EventKind
    payload: Any
    operation: str = ""
    batch_index: int = 0

    @classmethod
    def record(cls, payload: Any, operation: str = "", batch_index: int = 0) -> ResultEvent:
        return cls(EventKind.RECORD, payload, operation, batch_index)

    @classmethod
    def error(cls, error: ApiError, operation: str = "", batch_index: int = 0) -> ResultEvent:
        return cls(EventKind.ERROR, error, operation, batch_index)

    @classmethod
    def file(cls, info: FileInfo, operation: str = "", batch_index: int = 0) -> ResultEvent:
        return cls(EventKind.FILE, info, operation, batch_index)

    @classmethod
    def total_count(cls, total: int, operation: str = "", batch_index: int = 0) -> ResultEvent:
        return cls(EventKind.TOTAL, total, operation, batch_index)


@dataclass
class OperationResult:
    """Everything one logical invocation produced, in dispatch order."""

    records: list[Any] = field(default_factory=list)
    errors: list[ApiError] = field(default_factory=list)
    files: list[FileInfo] = field(default_factory=list)
    total: int | None = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, event: ResultEvent) -> None:
        if event.kind is EventKind.RECORD:
            self.records.append(event.payload)
        elif event.kind is EventKind.ERROR:
            self.errors.append(event.payload)
        elif event.kind is EventKind.FILE:
            self.files.append(event.payload)
        elif event.kind is EventKind.TOTAL:
            self.total = event.payload if self.total is None else self.total + event.payload

    @classmethod
    def from_events(cls, events: Iterable[ResultEvent]) -> OperationResult:
        result = cls()
        for event in events:
            result.add(event)
        return result
