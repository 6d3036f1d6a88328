"""Runtime orchestration components."""

from .batching import BatchPlanner, BatchPolicy
from .compiler import ContentCompiler
from .dispatcher import Dispatcher, DispatchOutcome, encode_body
from .engine import Engine
from .normalizer import NormalizedResponse, ResponseNormalizer, extract_pagination
from .pagination import PaginationLoop, PaginationState
from .rate_limit import RateLimitGuard, parse_retry_after

__all__ = [
    "BatchPlanner",
    "BatchPolicy",
    "ContentCompiler",
    "DispatchOutcome",
    "Dispatcher",
    "Engine",
    "NormalizedResponse",
    "PaginationLoop",
    "PaginationState",
    "RateLimitGuard",
    "ResponseNormalizer",
    "encode_body",
    "extract_pagination",
    "parse_retry_after",
]
