"""
Structured error types for the review pivot engine.

Every failure that crosses a layer boundary (repository → engine → ops →
transport) is one of the typed errors below.  Each carries:

- **Category:** What kind of error (validation, storage, cancelled, ...)
- **Retryable:** Whether the caller may reasonably retry
- **Context:** Structured metadata (project, root, operation, field)
- **Cause:** The chained driver exception, kept verbatim

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                         PivotError                            │
        │  (category, retryable, context, cause)                        │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  ValidationError     ConfigError       StorageError           │
        │  (VALIDATION)        (CONFIG)          (STORAGE)              │
        │                                            │                  │
        │                                        QueryError             │
        │                                                               │
        │  QueryCancelled ───────────▶ DeadlineExceeded                  │
        │  (CANCELLED)                 (CANCELLED, retryable)           │
        └──────────────────────────────────────────────────────────────┘

Store errors raised by the database driver are NOT wrapped by the engine:
they propagate unchanged so the ops layer can report the original message.
``StorageError``/``QueryError`` exist for failures the repository itself
detects (unparseable rows, unsupported backends).

Examples:
    >>> err = ValidationError("page must be >= 1", field="page", value=0)
    >>> err.to_dict()["field"]
    'page'

    >>> DeadlineExceeded("pivot", timeout=7.0).retryable
    True

Tags:
    error-handling, exception-hierarchy, cancellation, review-pivot

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    VALIDATION = "VALIDATION"     # Malformed query input
    CONFIG = "CONFIG"             # Missing/invalid settings
    STORAGE = "STORAGE"           # Record store failures detected locally
    DATABASE = "DATABASE"         # Driver/transport errors
    CANCELLED = "CANCELLED"       # Caller cancellation or deadline
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Only non-None fields are emitted by :meth:`to_dict`, so the context can
    be splatted straight into a structlog event.
    """

    project: str | None = None
    root: str | None = None
    operation: str | None = None
    request_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["project", "root", "operation", "request_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class PivotError(Exception):
    """
    Base exception for all review pivot errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    raising sites only pass what is specific to the failure.

    Examples:
        >>> error = PivotError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = PivotError("bad root").with_context(project="demo", root="props")
        >>> error.context.root
        'props'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> PivotError:
        """Add context to this error (fluent API).

        Usage:
            raise ValidationError("missing project").with_context(operation="list_asset_pivots")
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(PivotError):
    """
    Malformed query input.

    Never retryable. ``field`` names the offending request parameter so
    transports can point the caller at it.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(PivotError):
    """Configuration error. Never retryable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StorageError(PivotError):
    """Record store failure detected by the repository itself."""

    default_category = ErrorCategory.STORAGE
    default_retryable = False


class QueryError(StorageError):
    """A store read returned something the repository cannot interpret."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# CANCELLATION
# =============================================================================


class QueryCancelled(PivotError):
    """The request was cancelled before the pipeline completed.

    No partial result accompanies this error.
    """

    default_category = ErrorCategory.CANCELLED
    default_retryable = False

    def __init__(self, message: str = "query cancelled", **kwargs: Any):
        super().__init__(message, **kwargs)


class DeadlineExceeded(QueryCancelled):
    """The request-scoped deadline expired mid-pipeline."""

    default_retryable = True

    def __init__(
        self,
        operation: str = "query",
        *,
        timeout: float | None = None,
        elapsed: float | None = None,
        **kwargs: Any,
    ):
        self.operation = operation
        self.timeout = timeout
        self.elapsed = elapsed

        msg = f"'{operation}' exceeded its deadline"
        if timeout is not None:
            msg += f" of {timeout}s"
        if elapsed is not None:
            msg += f" (ran for {elapsed:.2f}s)"
        super().__init__(msg, **kwargs)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, PivotError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "PivotError",
    "ValidationError",
    "ConfigError",
    "StorageError",
    "QueryError",
    "QueryCancelled",
    "DeadlineExceeded",
    "is_retryable",
]
