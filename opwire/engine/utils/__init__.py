"""Utility functions."""

from .relative_time import resolve_relative_time, to_rfc3339

__all__ = ["resolve_relative_time", "to_rfc3339"]
