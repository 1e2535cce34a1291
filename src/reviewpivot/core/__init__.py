"""
Core primitives for review-pivot.

Database access (protocol, dialects, connection factory, base repository),
structured errors, structlog logging, pydantic settings and request-scoped
deadlines.  Nothing in here knows about phases or pivots.
"""

from reviewpivot.core.errors import (
    ErrorCategory,
    PivotError,
    QueryCancelled,
    DeadlineExceeded,
    ValidationError,
)
from reviewpivot.core.logging import get_logger

__all__ = [
    "ErrorCategory",
    "PivotError",
    "QueryCancelled",
    "DeadlineExceeded",
    "ValidationError",
    "get_logger",
]
