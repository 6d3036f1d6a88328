"""Batching policy definitions.

This module defines the policy used to decide how large a single request
may grow before the planner splits it, and the helper that derives a batch
size from identifier lengths when an operation does not declare one.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

# Hard ceiling for any batch, declared or derived
MAX_BATCH_CEILING = 500


@dataclass(frozen=True)
class BatchPolicy:
    """Batching policy for one invocation.

    Attributes:
        max_size: Declared per-request ceiling (None = derive from id length)
        ceiling: Upper bound applied to derived sizes
        max_url_length: Longest URL the planner will produce when deriving
    """

    max_size: int | None = None
    ceiling: int = MAX_BATCH_CEILING
    max_url_length: int = 65535

    def __post_init__(self) -> None:
        if self.max_size is not None and self.max_size < 1:
            raise ValueError("BatchPolicy max_size must be positive")
        if self.ceiling < 1:
            raise ValueError("BatchPolicy ceiling must be positive")

    def resolve(self, *, path: str, field: str | None, values: Sequence[Any]) -> int:
        """Resolve the effective batch size.

        Args:
            path: Request URL without query string
            field: Wire name of the split field (None if nothing is splittable)
            values: Values of the split field

        Returns:
            Declared size if set, otherwise a size derived from the average
            identifier length, capped at ``ceiling``
        """
        if self.max_size is not None:
            return self.max_size
        if field is None or not values:
            return self.ceiling
        return derive_batch_size(
            path=path,
            field=field,
            values=values,
            max_url_length=self.max_url_length,
            ceiling=self.ceiling,
        )


def derive_batch_size(
    *,
    path: str,
    field: str,
    values: Sequence[Any],
    max_url_length: int = 65535,
    ceiling: int = MAX_BATCH_CEILING,
) -> int:
    """Largest number of ``field=value`` terms that fit in one URL.

    Each term costs the average value length plus the field name, ``=`` and
    the ``&`` separator.
    """
    average = sum(len(str(value)) for value in values) / len(values)
    per_term = average + len(field) + 2
    available = max(max_url_length - len(path) - 1, 0)
    return max(1, min(ceiling, int(available // per_term)))
