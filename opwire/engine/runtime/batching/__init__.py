"""Batch planning for oversized requests.

This module splits one compiled request into several descriptors when an
identifier list would exceed an operation's per-request ceiling.

Architecture:
    The batching layer consists of:
    - definitions.py: BatchPolicy and the derived batch-size helper
    - planners.py: BatchPlanner (splits query or body identifier lists)
    - telemetry.py: Structured logging for planning and dispatch

Usage:
    Endpoint specs opt into a fixed ceiling with ``max_batch_size``;
    otherwise the planner derives one from the average identifier length.
"""

from __future__ import annotations

from .definitions import MAX_BATCH_CEILING, BatchPolicy, derive_batch_size
from .planners import BatchPlanner

__all__ = [
    "BatchPolicy",
    "BatchPlanner",
    "MAX_BATCH_CEILING",
    "derive_batch_size",
]
