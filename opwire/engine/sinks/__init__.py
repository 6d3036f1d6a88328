"""Event sinks for the engine's optional side channel."""

from ..core.protocols import ResultSink
from .in_memory import InMemorySink

__all__ = ["InMemorySink", "ResultSink"]
