"""Engine facade wiring compiler, planner, dispatcher and pagination.

The Engine turns ``(operation, inputs)`` into a stream of result events.

Architecture:
    caller inputs -> ContentCompiler -> BatchPlanner
        -> [Dispatcher <-> PaginationLoop] -> ResponseNormalizer -> caller

    Execution is strictly sequential: each descriptor, its pagination
    continuations and any rate-limit cooldown complete before the next
    descriptor starts. ``stream`` only suspends between calls, so a caller
    closing the stream never interrupts an in-flight request.

Design Decisions:
    - Async generator output: results are available as they arrive
    - Errors are events, not exceptions; only compilation and catalog
      errors propagate, before any request is sent
    - A credential failure ends the invocation after its error event
    - Optional sink with explicit configure/clear lifecycle

See Also:
    - EndpointCatalog: Supplies per-operation specs
    - Dispatcher: Executes single descriptors
    - PaginationLoop: Follows pagination cursors
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from time import perf_counter
from typing import Any

from ..catalog import EndpointCatalog, EndpointSpec, get_catalog
from ..core.config import EngineConfig
from ..core.enums import CONTROL_FLAGS, EventKind
from ..core.protocols import ConfirmLike, CredentialProvider, PathResolver, ResultSink, SleepFn, Transport
from ..io.paths import LocalPathResolver
from ..models import Content, OperationResult, RequestDescriptor, ResultEvent
from .batching import BatchPlanner, BatchPolicy
from .batching.telemetry import log_invocation_complete
from .compiler import ContentCompiler
from .dispatcher import Dispatcher
from .normalizer import ResponseNormalizer
from .pagination import PaginationLoop
from .rate_limit import RateLimitGuard

logger = logging.getLogger(__name__)


class Engine:
    """Compiles, batches, dispatches and paginates logical operations."""

    def __init__(
        self,
        transport: Transport,
        *,
        config: EngineConfig | None = None,
        catalog: EndpointCatalog | None = None,
        credentials: CredentialProvider | None = None,
        confirm: ConfirmLike | None = None,
        path_resolver: PathResolver | None = None,
        sink: ResultSink | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            transport: Performs HTTP calls (e.g. RESTTransport)
            config: Engine configuration (defaults to EngineConfig())
            catalog: Endpoint catalog (defaults to the process-wide catalog)
            credentials: Credential provider consulted before every request
            confirm: Gate approving each mutating request
            path_resolver: Resolves upload/download paths
            sink: Optional side-channel receiving every event
            sleep: Cooldown sleep function (defaults to asyncio.sleep)
        """
        self.config = config or EngineConfig()
        self.catalog = catalog if catalog is not None else get_catalog()
        self._transport = transport
        self._credentials = credentials
        self._compiler = ContentCompiler(path_resolver or LocalPathResolver())
        self._dispatcher = Dispatcher(
            transport,
            config=self.config,
            normalizer=ResponseNormalizer(),
            guard=RateLimitGuard(self.config, sleep=sleep),
            credentials=credentials,
            confirm=confirm,
            detail_fetcher=self._fetch_detail,
        )
        self._pagination = PaginationLoop(self._dispatcher)
        self._sink = sink

    # ------------------------------------------------------------------
    # Sink lifecycle
    # ------------------------------------------------------------------

    @property
    def sink(self) -> ResultSink | None:
        return self._sink

    def configure_sink(self, sink: ResultSink) -> None:
        """Send every subsequent event to ``sink`` as well as the caller."""
        self._sink = sink

    def clear_sink(self) -> None:
        self._sink = None

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def compile(self, operation: str, inputs: Mapping[str, Any]) -> list[RequestDescriptor]:
        """Compile and plan an invocation without sending anything.

        Raises:
            CatalogError: If the operation is unknown
            CompilationError: If inputs violate the operation's Format
        """
        spec = self.catalog.get(operation)
        flags, fields = self._split_flags(inputs)
        if flags["all"] and spec.max_page_size and "limit" in spec.format.query and fields.get("limit") is None:
            fields["limit"] = spec.max_page_size

        content = self._compiler.compile(spec.format, fields)
        template = self._template(spec, content, flags)
        planner = BatchPlanner(
            BatchPolicy(
                max_size=spec.max_batch_size,
                ceiling=self.config.max_batch_size,
                max_url_length=self.config.max_url_length,
            )
        )
        return planner.plan(content, template)

    async def stream(self, operation: str, inputs: Mapping[str, Any] | None = None) -> AsyncIterator[ResultEvent]:
        """Run one logical invocation, yielding events in dispatch order.

        A credential failure is reported as an error event and stops the
        remaining descriptors; events already yielded are kept.

        Args:
            operation: Catalog id of the operation
            inputs: Logical fields plus optional ``all``/``detailed``/``total``

        Raises:
            CatalogError: If the operation is unknown
            CompilationError: If inputs violate the operation's Format
        """
        descriptors = self.compile(operation, inputs or {})
        started = perf_counter()
        records = errors = 0

        for descriptor in descriptors:
            outcome = await self._dispatcher.dispatch(descriptor)
            events: AsyncIterator[ResultEvent] | None = None
            if descriptor.all and not descriptor.total:
                events = self._pagination.follow(descriptor, outcome)

            for event in outcome.events:
                records += event.kind is EventKind.RECORD
                errors += event.kind is EventKind.ERROR
                await self._publish(event)
                yield event

            if events is not None:
                async for event in events:
                    records += event.kind is EventKind.RECORD
                    errors += event.kind is EventKind.ERROR
                    await self._publish(event)
                    yield event
                last = self._pagination.last_outcome
                if last is not None and last.unauthenticated:
                    outcome = last

            if outcome.unauthenticated:
                logger.warning(
                    "invocation_unauthenticated",
                    extra={"operation": operation, "batch_index": descriptor.batch_index},
                )
                break

        log_invocation_complete(
            operation=operation,
            descriptors=len(descriptors),
            records=records,
            errors=errors,
            total_latency_ms=(perf_counter() - started) * 1000.0,
        )

    async def invoke(self, operation: str, inputs: Mapping[str, Any] | None = None) -> OperationResult:
        """Run one logical invocation and collect every event."""
        result = OperationResult()
        async for event in self.stream(operation, inputs):
            result.add(event)
        return result

    async def close(self) -> None:
        """Close the transport, the sink and any credential provider that owns a session."""
        await self._transport.close()
        close_credentials = getattr(self._credentials, "close", None)
        if close_credentials is not None:
            await close_credentials()
        if self._sink is not None:
            await self._sink.close()

    async def __aenter__(self) -> Engine:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _split_flags(inputs: Mapping[str, Any]) -> tuple[dict[str, bool], dict[str, Any]]:
        flags = {name: bool(inputs.get(name, False)) for name in CONTROL_FLAGS}
        fields = {name: value for name, value in inputs.items() if name not in CONTROL_FLAGS}
        return flags, fields

    def _template(self, spec: EndpointSpec, content: Content, flags: Mapping[str, bool]) -> RequestDescriptor:
        headers = {"Accept": spec.accept}
        if content.is_binary:
            headers["Content-Type"] = "application/octet-stream"
        elif content.body is not None:
            headers["Content-Type"] = spec.content_type

        read_only = spec.read_only if spec.read_only is not None else self.config.is_read_only(spec.method)
        return RequestDescriptor(
            operation=spec.id,
            path=self.config.url_for(spec.path),
            method=spec.method,
            headers=headers,
            read_only=read_only,
            all=flags["all"],
            detailed=flags["detailed"],
            total=flags["total"],
            detail_operation=spec.detail_operation if spec.supports_detail_fetch else None,
        )

    async def _fetch_detail(self, operation: str, ids: list[Any]) -> list[ResultEvent]:
        """Fetch full records for ``ids`` through the detail operation."""
        logger.debug("detail_fetch", extra={"operation": operation, "ids": len(ids)})
        events: list[ResultEvent] = []
        for descriptor in self.compile(operation, {"ids": ids}):
            outcome = await self._dispatcher.dispatch(descriptor)
            events.extend(outcome.events)
            if outcome.unauthenticated:
                break
        return events

    async def _publish(self, event: ResultEvent) -> None:
        if self._sink is None:
            return
        try:
            await self._sink.publish(event)
        except Exception as exc:
            logger.warning(
                "sink_publish_failed",
                extra={"error_type": type(exc).__name__, "error_message": str(exc)},
            )
