"""Response normalizer flattening JSON envelopes into records and errors.

Architecture:
    APIs wrap payloads in envelopes of differing shape. The normalizer
    reduces every envelope to:
    - records: the payload, presented as a flat list
    - errors: one ApiError per ``errors`` entry, tagged with the trace id
    - pagination: the ``meta.pagination`` block, if any
    - total: the server-reported total, if any

Envelope Rules:
    - ``errors``, ``extensions`` and ``meta`` are bookkeeping, never payload
    - One payload field holding a list yields that list
    - One payload field holding an object whose only member is a list
      unwraps that inner list (single nested array shape)
    - Several payload fields yield one record combining them
    - No payload fields, or a single null payload: informational ``meta``
      members outside pagination and trace bookkeeping become the record
    - Errors never suppress records from the same response
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..models import ApiError, PaginationMeta, RawResponse

logger = logging.getLogger(__name__)

ENVELOPE_KEYS = frozenset({"errors", "extensions", "meta"})

# meta members that describe the request rather than the result
META_BOOKKEEPING = frozenset({"pagination", "trace_id", "query_time", "powered_by"})


@dataclass
class NormalizedResponse:
    """Flat view of one response."""

    status: int
    records: list[Any] = field(default_factory=list)
    errors: list[ApiError] = field(default_factory=list)
    pagination: PaginationMeta | None = None
    trace_id: str | None = None

    @property
    def total(self) -> int | None:
        return self.pagination.total if self.pagination else None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def extract_pagination(meta: Any) -> PaginationMeta | None:
    """Build PaginationMeta from an envelope's ``meta`` member."""
    if not isinstance(meta, dict):
        return None
    block = meta.get("pagination")
    if not isinstance(block, dict):
        return None

    offset = block.get("offset")
    if isinstance(offset, str) and offset.isdigit():
        offset = int(offset)
    elif isinstance(offset, str) and not offset:
        offset = None
    elif not isinstance(offset, (int, str)) or isinstance(offset, bool):
        offset = None

    return PaginationMeta(
        offset=offset,
        after=block.get("after") or None,
        next_token=block.get("next_token") or None,
        total=_as_int(block.get("total")),
        limit=_as_int(block.get("limit")),
    )


class ResponseNormalizer:
    """Extracts records, errors and pagination metadata from responses."""

    def normalize(self, response: RawResponse) -> NormalizedResponse:
        result = NormalizedResponse(status=response.status)
        # Throttling is reported by the guard; only server-sent entries surface
        synthesize = not response.ok and response.status != 429
        if not response.body:
            if synthesize:
                result.errors.append(ApiError(code=response.status, message="Empty response body"))
            return result

        try:
            envelope = response.json()
        except (ValueError, UnicodeDecodeError):
            logger.debug("response_not_json", extra={"status": response.status, "url": response.url})
            if response.ok:
                result.records.append(response.text())
            elif synthesize:
                result.errors.append(ApiError(code=response.status, message=response.text().strip()))
            return result

        if not isinstance(envelope, dict):
            result.records.extend(envelope if isinstance(envelope, list) else [envelope])
            return result

        meta = envelope.get("meta")
        result.trace_id = meta.get("trace_id") if isinstance(meta, dict) else None
        result.pagination = extract_pagination(meta)
        result.errors.extend(self._errors(envelope.get("errors"), result.trace_id))
        result.records.extend(self._records(envelope, meta))

        if synthesize and not result.errors and not result.records:
            result.errors.append(
                ApiError(code=response.status, message="Request failed", trace_id=result.trace_id)
            )
        return result

    def _errors(self, errors: Any, trace_id: str | None) -> list[ApiError]:
        if not errors:
            return []
        entries = errors if isinstance(errors, list) else [errors]
        out: list[ApiError] = []
        for entry in entries:
            if isinstance(entry, dict):
                out.append(
                    ApiError(
                        code=entry.get("code"),
                        message=str(entry.get("message", entry)),
                        trace_id=entry.get("trace_id") or trace_id,
                    )
                )
            else:
                out.append(ApiError(message=str(entry), trace_id=trace_id))
        return out

    def _records(self, envelope: dict[str, Any], meta: Any) -> list[Any]:
        payload_keys = [key for key in envelope if key not in ENVELOPE_KEYS]

        if len(payload_keys) == 1:
            records = self._unwrap(envelope[payload_keys[0]])
            if records or envelope[payload_keys[0]] is not None:
                return records
        elif payload_keys:
            return [{key: envelope[key] for key in payload_keys}]

        if isinstance(meta, dict):
            info = {key: value for key, value in meta.items() if key not in META_BOOKKEEPING}
            if info:
                return [info]
        return []

    def _unwrap(self, value: Any) -> list[Any]:
        if value is None:
            return []
        if isinstance(value, list):
            return value
        if isinstance(value, dict) and len(value) == 1:
            inner = next(iter(value.values()))
            if isinstance(inner, list):
                return inner
        return [value]
