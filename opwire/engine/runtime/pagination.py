"""Pagination loop following offset, ``after`` and ``next_token`` cursors.

Architecture:
    One ``PaginationState`` lives for the duration of a single "retrieve
    all" invocation. After the first page is dispatched the loop repeatedly
    clones the original descriptor with an updated cursor term, dispatches
    it, and feeds the outcome back into the state until the state reports
    exhaustion.

Termination:
    - No pagination metadata in the first response (single page)
    - Received count reaches the server-reported total
    - A cursor response carries no further cursor, or repeats it
    - A continuation yields zero records
    - A continuation fails, is throttled, or is declined at the confirmation
      gate

    When a continuation fails, is throttled, is declined or yields zero
    records before the received count reaches a nonzero server-reported
    total, a warning-class "total results limited by API" error follows
    the events of that page.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from ..core.enums import PaginationMechanism
from ..models import ApiError, PaginationMeta, RequestDescriptor, ResultEvent
from .dispatcher import Dispatcher, DispatchOutcome

logger = logging.getLogger(__name__)


def _query_offset(descriptor: RequestDescriptor) -> int:
    value = descriptor.query_value("offset")
    if value is not None and value.isdigit():
        return int(value)
    return 0


@dataclass
class PaginationState:
    """Cursor bookkeeping for one logical invocation.

    Attributes:
        mechanism: Pagination style selected from the first response
        cursor: Next offset (int) or opaque token (str); None when exhausted
        total: Server-reported total, if any
        received: Records received so far, across all pages
        last_page: Records received on the most recent page
    """

    mechanism: PaginationMechanism
    cursor: int | str | None
    total: int | None = None
    received: int = 0
    last_page: int = 0
    repeated: bool = False

    @classmethod
    def start(cls, descriptor: RequestDescriptor, outcome: DispatchOutcome) -> PaginationState | None:
        """Create state from the first page, or None when it is a single page."""
        meta = outcome.pagination
        if meta is None:
            return None
        mechanism = cls._mechanism(meta)
        if mechanism is None:
            return None
        state = cls(
            mechanism=mechanism,
            cursor=None,
            total=meta.total,
            received=outcome.record_count,
            last_page=outcome.record_count,
        )
        state.cursor = state._next_cursor(meta, previous=_query_offset(descriptor))
        return state

    @staticmethod
    def _mechanism(meta: PaginationMeta) -> PaginationMechanism | None:
        if not meta.has_cursor:
            return None
        if meta.after:
            return PaginationMechanism.AFTER
        if meta.next_token:
            return PaginationMechanism.NEXT_TOKEN
        if isinstance(meta.offset, int):
            return PaginationMechanism.OFFSET
        return PaginationMechanism.OFFSET_TOKEN

    def _next_cursor(self, meta: PaginationMeta | None, previous: int) -> int | str | None:
        if self.mechanism is PaginationMechanism.OFFSET:
            prior = meta.offset if meta is not None and isinstance(meta.offset, int) else previous
            return prior + self.last_page
        if meta is None:
            return None
        if self.mechanism is PaginationMechanism.AFTER:
            return meta.after
        if self.mechanism is PaginationMechanism.NEXT_TOKEN:
            return meta.next_token
        return meta.offset if isinstance(meta.offset, str) and meta.offset else None

    @property
    def shortfall(self) -> bool:
        """Server reported more results than were received."""
        return bool(self.total) and self.received < self.total

    @property
    def exhausted(self) -> bool:
        if self.cursor is None or self.repeated:
            return True
        if self.last_page == 0:
            return True
        if self.total is not None:
            if self.mechanism is PaginationMechanism.OFFSET:
                return int(self.cursor) >= self.total
            return self.received >= self.total
        return False

    def continuation(self, original: RequestDescriptor) -> RequestDescriptor:
        """Clone the original descriptor with the current cursor term."""
        return original.with_query_param(self.mechanism.query_param, self.cursor)

    def advance(self, outcome: DispatchOutcome) -> None:
        """Fold a continuation page into the state."""
        meta = outcome.pagination
        previous = self.cursor if isinstance(self.cursor, int) else 0
        self.received += outcome.record_count
        self.last_page = outcome.record_count
        if meta is not None and meta.total is not None:
            self.total = meta.total
        cursor = self._next_cursor(meta, previous=previous)
        self.repeated = cursor is not None and cursor == self.cursor and self.mechanism is not PaginationMechanism.OFFSET
        self.cursor = cursor


class PaginationLoop:
    """Drives continuation requests through the dispatcher.

    ``last_outcome`` holds the outcome of the last page ``follow`` dispatched,
    so the caller can tell how the sequence ended.
    """

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher
        self.last_outcome: DispatchOutcome | None = None

    async def follow(self, original: RequestDescriptor, first: DispatchOutcome) -> AsyncIterator[ResultEvent]:
        """Yield events from every page after the first.

        Args:
            original: Descriptor that produced the first page
            first: Outcome of dispatching ``original``
        """
        self.last_outcome = first
        state = PaginationState.start(original, first)
        if state is None:
            return

        steps = 0
        while not state.exhausted:
            continuation = state.continuation(original)
            logger.info(
                "pagination_continue",
                extra={
                    "operation": original.operation,
                    "mechanism": state.mechanism.value,
                    "cursor": state.cursor,
                    "received": state.received,
                    "total": state.total,
                },
            )
            outcome = await self._dispatcher.dispatch(continuation)
            self.last_outcome = outcome
            steps += 1
            for event in outcome.events:
                yield event

            if outcome.failed or outcome.skipped or outcome.throttled or outcome.record_count == 0:
                if state.shortfall:
                    yield ResultEvent.error(
                        ApiError(
                            message=(
                                f"total results limited by API: received {state.received} "
                                f"of {state.total}"
                            ),
                        ),
                        original.operation,
                        original.batch_index,
                    )
                break
            state.advance(outcome)

        logger.info(
            "pagination_complete",
            extra={
                "operation": original.operation,
                "pages": steps + 1,
                "received": state.received,
                "total": state.total,
            },
        )
