"""Value objects passed between engine components.

Model Categories:
    - Compilation: Content
    - Requests: RequestDescriptor
    - Responses: RawResponse, PaginationMeta
    - Results: ApiError, FileInfo, ResultEvent, OperationResult
"""

from .content import Content
from .descriptor import RequestDescriptor
from .response import RawResponse
from .results import ApiError, FileInfo, OperationResult, PaginationMeta, ResultEvent

__all__ = [
    "ApiError",
    "Content",
    "FileInfo",
    "OperationResult",
    "PaginationMeta",
    "RawResponse",
    "RequestDescriptor",
    "ResultEvent",
]
