"""Structured logging for batching and dispatch.

This module provides telemetry hooks for batch planning and descriptor
dispatch, emitting structured logs for observability.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def log_batch_plan(
    *,
    operation: str,
    total_batches: int,
    batch_size: int,
    split_field: str | None = None,
    split_slot: str | None = None,
    total_values: int | None = None,
) -> None:
    """Log batch plan creation.

    Args:
        operation: Operation identifier
        total_batches: Number of descriptors planned
        batch_size: Effective per-descriptor ceiling
        split_field: Wire name of the split field, if any
        split_slot: "query" or "body" when a split happened
        total_values: Number of values in the split field
    """
    logger.info(
        "batch_plan_created",
        extra={
            "operation": operation,
            "total_batches": total_batches,
            "batch_size": batch_size,
            "split_field": split_field,
            "split_slot": split_slot,
            "total_values": total_values,
        },
    )


def log_dispatch_completed(
    *,
    operation: str,
    batch_index: int,
    status: int,
    records: int,
    errors: int,
    latency_ms: float | None = None,
) -> None:
    """Log completion of a single descriptor.

    Args:
        operation: Operation identifier
        batch_index: Zero-based index of the descriptor in its batch
        status: HTTP status code
        records: Number of records extracted
        errors: Number of structured errors extracted
        latency_ms: Round-trip latency in milliseconds (optional)
    """
    logger.info(
        "dispatch_completed",
        extra={
            "operation": operation,
            "batch_index": batch_index,
            "status": status,
            "records": records,
            "errors": errors,
            "latency_ms": latency_ms,
        },
    )


def log_dispatch_skipped(*, operation: str, batch_index: int, method: str) -> None:
    """Log a descriptor declined at the confirmation gate."""
    logger.info(
        "dispatch_skipped",
        extra={"operation": operation, "batch_index": batch_index, "method": method},
    )


def log_dispatch_error(
    *,
    operation: str,
    batch_index: int,
    error_type: str,
    error_message: str,
) -> None:
    """Log a transport-level failure for one descriptor.

    Args:
        operation: Operation identifier
        batch_index: Zero-based index of the descriptor that failed
        error_type: Exception class name
        error_message: Error message
    """
    logger.error(
        "dispatch_error",
        extra={
            "operation": operation,
            "batch_index": batch_index,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_invocation_complete(
    *,
    operation: str,
    descriptors: int,
    records: int,
    errors: int,
    total_latency_ms: float | None = None,
) -> None:
    """Log completion of one logical invocation."""
    logger.info(
        "invocation_complete",
        extra={
            "operation": operation,
            "descriptors": descriptors,
            "records": records,
            "errors": errors,
            "total_latency_ms": total_latency_ms,
        },
    )
