"""Batch planning logic for splitting oversized requests.

This module provides the BatchPlanner class that turns one compiled Content
bundle into an ordered sequence of request descriptors, none of which
carries more identifiers than the effective batch size.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from ...core.enums import SPLIT_FIELDS
from ...models import Content, RequestDescriptor
from .definitions import BatchPolicy
from .telemetry import log_batch_plan


def _term_name(term: str) -> str:
    return term.split("=", 1)[0]


def _chunks(values: Sequence[Any], size: int) -> list[list[Any]]:
    return [list(values[i : i + size]) for i in range(0, len(values), size)]


class BatchPlanner:
    """Plans request descriptors for one logical invocation.

    The planner splits at most one dimension: a repeated query-string field,
    or an array-valued identifier field in the body. Everything else on the
    template and in the content is copied onto every descriptor unchanged.
    """

    def __init__(self, policy: BatchPolicy | None = None) -> None:
        """Initialize batch planner.

        Args:
            policy: Batching policy (default: derive sizes, cap at 500)
        """
        self._policy = policy or BatchPolicy()

    @property
    def policy(self) -> BatchPolicy:
        return self._policy

    def plan(self, content: Content, template: RequestDescriptor) -> list[RequestDescriptor]:
        """Plan descriptors for compiled content.

        Args:
            content: Compiled content bundle
            template: Descriptor carrying path, method, headers and flags

        Returns:
            Ordered list of descriptors; exactly one when nothing exceeds the
            effective batch size
        """
        base = replace(
            template,
            query=tuple(content.query),
            body=content.body,
            formdata=content.formdata,
            outfile=content.outfile if content.outfile is not None else template.outfile,
            batch_index=0,
        )

        query_field = self._query_split_field(base.query)
        if query_field is not None:
            values = [term.split("=", 1)[1] for term in base.query if _term_name(term) == query_field]
            size = self._policy.resolve(path=base.path, field=query_field, values=values)
            if len(values) > size:
                plans = self._split_query(base, query_field, size)
                self._log(base, plans, size, query_field, "query", len(values))
                return plans

        body_field = self._body_split_field(base.body)
        if body_field is not None:
            values = base.body[body_field]
            size = self._policy.resolve(path=base.path, field=body_field, values=values)
            if len(values) > size:
                plans = self._split_body(base, body_field, size)
                self._log(base, plans, size, body_field, "body", len(values))
                return plans

        size = self._policy.max_size or self._policy.ceiling
        self._log(base, [base], size, None, None, None)
        return [base]

    def _query_split_field(self, query: Sequence[str]) -> str | None:
        """Pick the repeated query field eligible for splitting."""
        counts: dict[str, int] = {}
        for term in query:
            name = _term_name(term)
            counts[name] = counts.get(name, 0) + 1
        for name in SPLIT_FIELDS:
            if name in counts:
                return name
        repeated = [(count, name) for name, count in counts.items() if count > 1]
        if not repeated:
            return None
        # Most terms wins; first declared wins ties
        best = max(count for count, _ in repeated)
        return next(name for count, name in repeated if count == best)

    def _body_split_field(self, body: Any) -> str | None:
        if not isinstance(body, dict):
            return None
        for name in SPLIT_FIELDS:
            if isinstance(body.get(name), list):
                return name
        return None

    def _split_query(self, base: RequestDescriptor, field: str, size: int) -> list[RequestDescriptor]:
        split_terms = [term for term in base.query if _term_name(term) == field]
        anchor = next(i for i, term in enumerate(base.query) if _term_name(term) == field)
        others = [term for term in base.query if _term_name(term) != field]
        # Other terms before the first split term keep their position
        leading = [term for term in base.query[:anchor] if _term_name(term) != field]
        trailing = others[len(leading) :]

        return [
            replace(base, query=tuple(leading + chunk + trailing), batch_index=index)
            for index, chunk in enumerate(_chunks(split_terms, size))
        ]

    def _split_body(self, base: RequestDescriptor, field: str, size: int) -> list[RequestDescriptor]:
        body: dict[str, Any] = base.body
        return [
            replace(base, body={**body, field: chunk}, batch_index=index)
            for index, chunk in enumerate(_chunks(body[field], size))
        ]

    def _log(
        self,
        base: RequestDescriptor,
        plans: list[RequestDescriptor],
        size: int,
        field: str | None,
        slot: str | None,
        total_values: int | None,
    ) -> None:
        log_batch_plan(
            operation=base.operation,
            total_batches=len(plans),
            batch_size=size,
            split_field=field,
            split_slot=slot,
            total_values=total_values,
        )
