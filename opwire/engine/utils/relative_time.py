"""Relative time expressions ("last 3 days") to RFC 3339 timestamps."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

RELATIVE_TIME = re.compile(r"\b(?:last|past)\s+(\d+)\s+(day|days|hour|hours)\b", re.IGNORECASE)

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def to_rfc3339(moment: datetime) -> str:
    """Format a datetime as an RFC 3339 UTC timestamp with second precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime(RFC3339_FORMAT)


def resolve_relative_time(value: str, now: datetime | None = None) -> str:
    """Rewrite every relative time expression in ``value``.

    Args:
        value: Raw string, possibly a larger filter expression
        now: Reference time (defaults to the current UTC time)

    Returns:
        The string with each ``last|past N day(s)|hour(s)`` replaced by the
        absolute timestamp ``now - N units``

    Examples:
        >>> resolve_relative_time("last 1 day", datetime(2024, 1, 2, tzinfo=UTC))
        '2024-01-01T00:00:00Z'
    """
    if "last" not in value.lower() and "past" not in value.lower():
        return value
    reference = now or datetime.now(UTC)

    def _replace(match: re.Match[str]) -> str:
        amount = int(match.group(1))
        unit = match.group(2).lower()
        delta = timedelta(days=amount) if unit.startswith("day") else timedelta(hours=amount)
        return to_rfc3339(reference - delta)

    return RELATIVE_TIME.sub(_replace, value)
