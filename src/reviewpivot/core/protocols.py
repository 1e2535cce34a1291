"""
Canonical protocol definitions for review-pivot.

Domain code depends on the *shape* of a database connection, never on a
driver.  ``sqlite3`` (through :class:`~reviewpivot.ops.sqlite_conn.SqliteConnection`)
and SQLAlchemy sessions (through
:class:`~reviewpivot.core.orm.session.SAConnectionBridge`) both satisfy
:class:`Connection`.

Tags:
    protocol, connection, database, review-pivot
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface for database operations.

    Architecture:
        ::

            Connection Protocol:
            ┌────────────────────────────────────────────────────────┐
            │ execute(sql, params)   → Execute single statement      │
            │ executemany(sql, list) → Execute for multiple params   │
            │ fetchone()             → Get one result row            │
            │ fetchall()             → Get all result rows           │
            │ commit()               → Commit transaction            │
            │ rollback()             → Rollback transaction          │
            └────────────────────────────────────────────────────────┘

    Examples:
        >>> conn.execute("SELECT * FROM t_review_info WHERE project = ?", ("demo",))
        >>> rows = conn.fetchall()
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL statement for multiple parameter sets."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from last query."""
        ...

    def fetchall(self) -> list:
        """Fetch all rows from last query."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


__all__ = ["Connection"]
