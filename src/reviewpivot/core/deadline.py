"""
Request-scoped deadlines and cancellation.

A pivot request runs one pipeline (store read → resolve → assemble →
filter → sort → page) and must either finish or fail cleanly before its
deadline.  A :class:`Deadline` travels with the request; every stage calls
:meth:`Deadline.check` at its boundary, and :func:`guard_query` additionally
bounds the in-flight store statement.

Architecture:
    ::

        OperationContext.deadline ──▶ PivotEngine.run(query, deadline=...)
                                         │
                    ┌────────────────────┼──────────────────────┐
                    ▼                    ▼                      ▼
             deadline.check()     guard_query(conn, ...)   deadline.check()
             (before store)       SQLite: progress handler  (after filter/sort)
                                  PostgreSQL: SET LOCAL
                                  statement_timeout

    Expiry raises :class:`~reviewpivot.core.errors.DeadlineExceeded`;
    :meth:`Deadline.cancel` makes the next check raise
    :class:`~reviewpivot.core.errors.QueryCancelled`.  Neither ever yields a
    partial result.

Examples:
    >>> deadline = Deadline.after(7.0, operation="list_asset_pivots")
    >>> deadline.check()            # no-op while time remains
    >>> deadline.cancel()
    >>> deadline.check()
    Traceback (most recent call last):
    ...
    reviewpivot.core.errors.QueryCancelled: 'list_asset_pivots' was cancelled

Tags:
    timeout, deadline, cancellation, review-pivot

Doc-Types:
    api-reference
"""

from __future__ import annotations

import sqlite3
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import DBAPIError

from reviewpivot.core.errors import DeadlineExceeded, QueryCancelled

# SQLite VM instructions between progress-handler callbacks
_PROGRESS_STEPS = 1000

# SQLSTATE for "canceling statement due to statement timeout"
_PG_QUERY_CANCELED = "57014"


@dataclass
class Deadline:
    """Absolute deadline plus a cancellation flag.

    Attributes:
        expires_at: Monotonic timestamp after which the request is expired,
            or ``None`` for an unbounded request.
        timeout_seconds: Original timeout value in seconds.
        operation: Name used in error messages.
        start_time: When the deadline started.
    """

    expires_at: float | None
    timeout_seconds: float | None = None
    operation: str = "query"
    start_time: float = field(default_factory=time.monotonic)
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def after(cls, seconds: float, operation: str = "query") -> Deadline:
        """Deadline *seconds* from now."""
        if seconds < 0:
            raise ValueError(f"Timeout must be non-negative, got {seconds}")
        now = time.monotonic()
        return cls(
            expires_at=now + seconds,
            timeout_seconds=seconds,
            operation=operation,
            start_time=now,
        )

    @classmethod
    def unbounded(cls, operation: str = "query") -> Deadline:
        """Deadline that never expires but can still be cancelled."""
        return cls(expires_at=None, operation=operation)

    def remaining(self) -> float | None:
        """Seconds until expiry (negative once expired, ``None`` if unbounded)."""
        if self.expires_at is None:
            return None
        return self.expires_at - time.monotonic()

    @property
    def elapsed(self) -> float:
        """Elapsed time since start in seconds."""
        return time.monotonic() - self.start_time

    def is_expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at

    def cancel(self) -> None:
        """Request cancellation; safe to call from another thread."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def should_stop(self) -> bool:
        """True once the request is cancelled or past its deadline."""
        return self.cancelled or self.is_expired()

    def error(self, op_name: str | None = None) -> QueryCancelled:
        """The exception describing why the request stopped."""
        name = op_name or self.operation
        if self.cancelled:
            return QueryCancelled(f"'{name}' was cancelled")
        return DeadlineExceeded(name, timeout=self.timeout_seconds, elapsed=self.elapsed)

    def check(self, op_name: str | None = None) -> None:
        """Raise if the request was cancelled or its deadline passed.

        Raises:
            QueryCancelled: On explicit cancellation.
            DeadlineExceeded: When the deadline has passed.
        """
        if self.should_stop():
            raise self.error(op_name)


def is_statement_timeout(exc: BaseException) -> bool:
    """True for a PostgreSQL statement killed by ``statement_timeout``."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    return code == _PG_QUERY_CANCELED


@contextmanager
def guard_query(conn: Any, deadline: Deadline, operation: str | None = None) -> Iterator[None]:
    """Run one store read under *deadline*.

    Checks the deadline before and after the block.  While the statement
    runs:

    - SQLite connections (anything exposing a ``raw``
      :class:`sqlite3.Connection`) get a progress handler that aborts the
      statement as soon as the deadline passes or the request is cancelled.
    - Connections exposing ``set_statement_timeout`` (the SQLAlchemy
      bridge) get the remaining time as a server-side statement timeout.

    Either abort is reported as the deadline's error instead of a store
    error.
    """
    deadline.check(operation)

    raw = getattr(conn, "raw", None)
    interruptible = isinstance(raw, sqlite3.Connection)
    if interruptible:
        raw.set_progress_handler(lambda: int(deadline.should_stop()), _PROGRESS_STEPS)

    set_timeout = getattr(conn, "set_statement_timeout", None)
    remaining = deadline.remaining()
    bounded = set_timeout is not None and remaining is not None
    if bounded:
        set_timeout(remaining)

    try:
        yield
    except sqlite3.OperationalError as exc:
        if interruptible and deadline.should_stop():
            raise deadline.error(operation) from exc
        raise
    except DBAPIError as exc:
        if bounded and is_statement_timeout(exc):
            # the aborted transaction is unusable until rolled back
            conn.rollback()
            raise deadline.error(operation) from exc
        raise
    finally:
        if interruptible:
            raw.set_progress_handler(None, 0)

    deadline.check(operation)


__all__ = [
    "Deadline",
    "guard_query",
    "is_statement_timeout",
]
