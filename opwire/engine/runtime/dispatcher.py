"""Dispatcher executing request descriptors one at a time.

Architecture:
    For each descriptor the dispatcher:
    1. Serializes a structured body when the content type is JSON
    2. Asks the confirmation gate before any mutating call
    3. Ensures a valid credential through the credential provider
    4. Sends the request through the transport
    5. Lets the rate-limit guard apply a cooldown after the response
    6. Reports a downloaded file, or normalizes the JSON envelope
    7. Optionally replaces returned ids with a "get by id" detail fetch

Design Decisions:
    - Transport failures become ApiError events, never exceptions, so the
      remaining descriptors of the same invocation still run
    - A declined confirmation skips only that descriptor
    - Credential failures also become ApiError events; the outcome is marked
      unauthenticated so the caller stops sending further descriptors
"""

from __future__ import annotations

import inspect
import json
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from time import perf_counter
from typing import Any

from ..core.config import EngineConfig
from ..core.enums import EventKind
from ..core.exceptions import CredentialError, RateLimitError, TransportError
from ..core.protocols import ConfirmLike, CredentialProvider, Transport
from ..models import ApiError, FileInfo, PaginationMeta, RawResponse, RequestDescriptor, ResultEvent
from .batching.telemetry import log_dispatch_completed, log_dispatch_error, log_dispatch_skipped
from .normalizer import ResponseNormalizer
from .rate_limit import RateLimitGuard

logger = logging.getLogger(__name__)

# (detail operation id, ids) -> events replacing the ids
DetailFetcher = Callable[[str, list[Any]], Awaitable[list[ResultEvent]]]


@dataclass
class DispatchOutcome:
    """Result of dispatching one descriptor.

    Attributes:
        descriptor: Descriptor as it was sent
        events: Events to emit, in order
        record_count: Records the server returned (before any detail fetch)
        pagination: Pagination metadata for the pagination loop
        status: HTTP status, None when nothing was received
        skipped: Declined at the confirmation gate
        failed: Transport-level or credential failure
        unauthenticated: No credential could be obtained; nothing was sent
    """

    descriptor: RequestDescriptor
    events: list[ResultEvent] = field(default_factory=list)
    record_count: int = 0
    pagination: PaginationMeta | None = None
    status: int | None = None
    skipped: bool = False
    failed: bool = False
    unauthenticated: bool = False

    @property
    def throttled(self) -> bool:
        return self.status == 429


def encode_body(descriptor: RequestDescriptor) -> RequestDescriptor:
    """Serialize a structured body to UTF-8 JSON when the content type is JSON."""
    body = descriptor.body
    if not isinstance(body, (dict, list)):
        return descriptor
    content_type = descriptor.content_type
    if content_type is not None and "json" not in content_type.lower():
        return descriptor
    encoded = json.dumps(body, ensure_ascii=False).encode("utf-8")
    prepared = replace(descriptor, body=encoded)
    if content_type is None:
        prepared = prepared.with_headers({"Content-Type": "application/json"})
    return prepared


class Dispatcher:
    """Sends descriptors and turns responses into result events."""

    def __init__(
        self,
        transport: Transport,
        *,
        config: EngineConfig | None = None,
        normalizer: ResponseNormalizer | None = None,
        guard: RateLimitGuard | None = None,
        credentials: CredentialProvider | None = None,
        confirm: ConfirmLike | None = None,
        detail_fetcher: DetailFetcher | None = None,
    ) -> None:
        self._transport = transport
        self._config = config or EngineConfig()
        self._normalizer = normalizer or ResponseNormalizer()
        self._guard = guard or RateLimitGuard(self._config)
        self._credentials = credentials
        self._confirm = confirm
        self._detail_fetcher = detail_fetcher

    @property
    def guard(self) -> RateLimitGuard:
        return self._guard

    async def dispatch(self, descriptor: RequestDescriptor) -> DispatchOutcome:
        """Dispatch one descriptor.

        Returns:
            DispatchOutcome with the events to emit and pagination metadata
        """
        prepared = encode_body(descriptor)

        if not descriptor.read_only and not await self._confirmed(prepared):
            log_dispatch_skipped(
                operation=descriptor.operation,
                batch_index=descriptor.batch_index,
                method=descriptor.method,
            )
            return DispatchOutcome(descriptor=prepared, skipped=True)

        if self._credentials is not None:
            try:
                token = await self._credentials.ensure_valid()
            except (CredentialError, RateLimitError) as exc:
                log_dispatch_error(
                    operation=descriptor.operation,
                    batch_index=descriptor.batch_index,
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                )
                error = ApiError(code=exc.status_code, message=str(exc) or type(exc).__name__)
                return DispatchOutcome(
                    descriptor=prepared,
                    events=[self._event(ResultEvent.error, error, descriptor)],
                    failed=True,
                    unauthenticated=True,
                )
            prepared = prepared.with_headers({"Authorization": f"Bearer {token}"})

        started = perf_counter()
        try:
            response = await self._transport.invoke(prepared)
        except TransportError as exc:
            log_dispatch_error(
                operation=descriptor.operation,
                batch_index=descriptor.batch_index,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            error = ApiError(message=str(exc) or type(exc).__name__)
            return DispatchOutcome(
                descriptor=prepared,
                events=[self._event(ResultEvent.error, error, descriptor)],
                failed=True,
            )
        latency_ms = (perf_counter() - started) * 1000.0

        await self._guard.observe(prepared, response)
        outcome = await self._build_outcome(prepared, response)

        log_dispatch_completed(
            operation=descriptor.operation,
            batch_index=descriptor.batch_index,
            status=response.status,
            records=outcome.record_count,
            errors=sum(1 for event in outcome.events if event.kind is EventKind.ERROR),
            latency_ms=latency_ms,
        )
        return outcome

    async def _build_outcome(self, descriptor: RequestDescriptor, response: RawResponse) -> DispatchOutcome:
        outcome = DispatchOutcome(descriptor=descriptor, status=response.status)

        if descriptor.outfile and response.ok and os.path.isfile(descriptor.outfile):
            stat = os.stat(descriptor.outfile)
            info = FileInfo(
                path=descriptor.outfile,
                size=stat.st_size,
                modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            )
            logger.debug("download_written", extra={"path": info.path, "size": info.size})
            outcome.events.append(self._event(ResultEvent.file, info, descriptor))
            return outcome

        normalized = self._normalizer.normalize(response)
        errors = [self._event(ResultEvent.error, error, descriptor) for error in normalized.errors]
        outcome.record_count = len(normalized.records)

        if descriptor.total:
            total = normalized.total if normalized.total is not None else len(normalized.records)
            outcome.events = [self._event(ResultEvent.total_count, total, descriptor), *errors]
            return outcome

        outcome.pagination = normalized.pagination
        records = normalized.records

        if self._detail_fetcher is not None and self._wants_detail(descriptor, records):
            detailed = await self._detail_fetcher(descriptor.detail_operation or "", list(records))
            outcome.events = [*detailed, *errors]
            return outcome

        outcome.events = [self._event(ResultEvent.record, record, descriptor) for record in records]
        outcome.events.extend(errors)
        return outcome

    def _wants_detail(self, descriptor: RequestDescriptor, records: list[Any]) -> bool:
        return (
            descriptor.detailed
            and descriptor.detail_operation is not None
            and bool(records)
            and all(isinstance(record, str) for record in records)
        )

    async def _confirmed(self, descriptor: RequestDescriptor) -> bool:
        if self._confirm is None:
            return True
        confirm = getattr(self._confirm, "confirm", self._confirm)
        answer = confirm(descriptor)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    @staticmethod
    def _event(factory: Callable[..., ResultEvent], payload: Any, descriptor: RequestDescriptor) -> ResultEvent:
        return factory(payload, descriptor.operation, descriptor.batch_index)
