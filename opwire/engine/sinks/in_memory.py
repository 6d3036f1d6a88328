"""In-memory sink backed by an asyncio queue."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from ..models import ResultEvent


class InMemorySink:
    """Collects published events for later consumption.

    Useful in tests and for hosts that drain events on a separate task.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[ResultEvent] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def publish(self, event: ResultEvent) -> None:
        if self._closed:
            raise RuntimeError("Sink is closed")
        await self._queue.put(event)

    async def get(self) -> ResultEvent:
        return await self._queue.get()

    def get_nowait(self) -> ResultEvent:
        return self._queue.get_nowait()

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    def drain(self) -> list[ResultEvent]:
        """Remove and return every queued event."""
        events: list[ResultEvent] = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    async def stream(self) -> AsyncIterator[ResultEvent]:
        """Yield queued events until the sink is closed and empty."""
        while not (self._closed and self._queue.empty()):
            try:
                yield await asyncio.wait_for(self._queue.get(), timeout=0.1)
            except TimeoutError:
                continue

    async def close(self) -> None:
        self._closed = True
