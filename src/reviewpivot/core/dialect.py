"""SQL dialect abstraction for the record store.

Repositories build their SQL from ``Dialect`` fragments so the same
latest-per-phase query runs on SQLite (tests, local development) and
PostgreSQL (production) without referencing a driver.

Architecture::

    Repository SQL:
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = f"... WHERE project = {d.placeholder(0)}"               │
    │  if d.supports_window_functions: ROW_NUMBER() OVER (...)       │
    │  else: fetch active rows, rank in memory                       │
    └────────────────────────────────────────────────────────────────┘
                              │
                   ┌──────────┴───────────┐
                   ▼                      ▼
            ┌────────────┐         ┌──────────────┐
            │  SQLite    │         │  PostgreSQL  │
            │  ?, ?, ?   │         │  ?, ?, ?  *  │
            └────────────┘         └──────────────┘

    * PostgreSQL is reached through ``SAConnectionBridge``, which rewrites
      ``?`` markers into SQLAlchemy named binds.

Examples:
    >>> d = SQLiteDialect()
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> SQLiteDialect(window_functions=False).supports_window_functions
    False

Tags:
    dialect, sql, portability, database, review-pivot
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment valid for the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    @property
    def supports_window_functions(self) -> bool:
        """Whether ``ROW_NUMBER() OVER (PARTITION BY ...)`` is available."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def like_escape(self) -> str:
        """``ESCAPE`` clause matching :func:`escape_like`."""
        ...

    def table_exists_query(self) -> str:
        """SQL query returning a row when the named table exists."""
        ...


def escape_like(value: str, escape: str = "\\") -> str:
    """Escape ``%``/``_`` wildcards so *value* matches literally in LIKE."""
    return (
        value.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


class SQLiteDialect:
    """SQLite dialect.

    Window functions need SQLite 3.25+.  Pass ``window_functions=False``
    for older builds; the repository then ranks rows in memory.
    """

    def __init__(self, *, window_functions: bool = True) -> None:
        self._window_functions = window_functions

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def supports_window_functions(self) -> bool:
        return self._window_functions

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def like_escape(self) -> str:
        return "ESCAPE '\\'"

    def table_exists_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type='table' AND name = ?"

    def __repr__(self) -> str:
        return f"SQLiteDialect(window_functions={self._window_functions})"


class PostgreSQLDialect:
    """PostgreSQL dialect, bound through the SQLAlchemy bridge."""

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def supports_window_functions(self) -> bool:
        return True

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def like_escape(self) -> str:
        return "ESCAPE '\\'"

    def table_exists_query(self) -> str:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = 'public' AND table_name = ?"
        )

    def __repr__(self) -> str:
        return "PostgreSQLDialect()"


# =========================================================================
# Registry / Factory
# =========================================================================

_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.

    Example:
        >>> get_dialect("postgresql").name
        'postgresql'
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "escape_like",
    "get_dialect",
]
