"""SQLAlchemy engine factory, session, and Connection bridge.

The record store speaks the ``Connection`` protocol.  For PostgreSQL the
connection is a SQLAlchemy ``Session`` wrapped in
:class:`SAConnectionBridge`, which rewrites ``?`` markers into named binds
so repository SQL stays identical across backends.

This module provides:

* ``create_pivot_engine``  -- Create a SA engine from a URL.
* ``PivotSession``         -- ``Session`` with ``expire_on_commit=False``.
* ``SAConnectionBridge``   -- Wraps a SA ``Session`` to satisfy the
  ``reviewpivot.core.protocols.Connection`` protocol.

Tags:
    orm, sqlalchemy, session, engine, bridge, connection
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session


def create_pivot_engine(
    url: str = "sqlite:///review_pivot.db",
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    pool_timeout: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``).
    echo:
        If ``True``, log all SQL.
    pool_size, max_overflow, pool_timeout:
        Connection pool parameters (ignored for SQLite).
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        return engine

    pool_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow
    if pool_timeout is not None:
        pool_kwargs["pool_timeout"] = pool_timeout

    return _sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs)


class PivotSession(Session):
    """Pre-configured session with ``expire_on_commit=False``."""

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def _rewrite_placeholders(sql: str) -> str:
    """Turn positional ``?`` markers into ``:p0, :p1, ...`` binds."""
    rewritten, idx = [], 0
    for ch in sql:
        if ch == "?":
            rewritten.append(f":p{idx}")
            idx += 1
        else:
            rewritten.append(ch)
    return "".join(rewritten)


class SAConnectionBridge:
    """Adapter that makes a SQLAlchemy ``Session`` look like ``Connection``.

    Implements: ``execute``, ``executemany``, ``fetchone``, ``fetchall``,
    ``commit``, ``rollback``, ``close``.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._last_result: Any = None

    def execute(self, sql: str, parameters: Sequence[Any] | None = None) -> SAConnectionBridge:
        if parameters:
            mapping = {f"p{i}": v for i, v in enumerate(parameters)}
            stmt = text(_rewrite_placeholders(sql))
            self._last_result = self._session.execute(stmt, mapping)
        else:
            self._last_result = self._session.execute(text(sql))
        return self

    def executemany(self, sql: str, seq_of_parameters: Sequence[Sequence[Any]]) -> None:
        for params in seq_of_parameters:
            self.execute(sql, params)

    def fetchone(self) -> tuple[Any, ...] | None:
        if self._last_result is None:
            return None
        row = self._last_result.fetchone()
        return tuple(row) if row is not None else None

    def fetchall(self) -> list[tuple[Any, ...]]:
        if self._last_result is None:
            return []
        return [tuple(r) for r in self._last_result.fetchall()]

    @property
    def dialect_name(self) -> str:
        return self._session.get_bind().dialect.name

    def set_statement_timeout(self, seconds: float) -> None:
        """Bound every statement of the current transaction (PostgreSQL only).

        ``SET LOCAL`` takes no bind parameters, so the value is rendered
        as an integer millisecond literal.
        """
        if self.dialect_name != "postgresql":
            return
        millis = max(1, int(seconds * 1000))
        self._session.execute(text(f"SET LOCAL statement_timeout = {millis}"))

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def close(self) -> None:
        self._session.close()

    @property
    def description(self) -> list[tuple[str, ...]] | None:
        """DB-API 2.0 compatible description from the last result.

        :class:`~reviewpivot.core.repository.BaseRepository` uses the
        column names to build dict rows.
        """
        if self._last_result is None:
            return None
        keys = list(self._last_result.keys())
        return [(k, None, None, None, None, None, None) for k in keys]

    @property
    def session(self) -> Session:
        return self._session
