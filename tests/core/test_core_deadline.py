"""Tests for reviewpivot.core.deadline: deadlines, cancellation, query guard."""

from __future__ import annotations

import sqlite3
import threading
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from reviewpivot.core.deadline import Deadline, guard_query, is_statement_timeout
from reviewpivot.core.errors import DeadlineExceeded, QueryCancelled
from reviewpivot.core.orm.session import SAConnectionBridge
from reviewpivot.ops.sqlite_conn import SqliteConnection

# Recursive CTE that keeps SQLite busy far longer than any test deadline
_SLOW_SQL = (
    "WITH RECURSIVE n(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM n WHERE x < 50000000) "
    "SELECT COUNT(*) FROM n"
)


class TestDeadline:
    def test_after(self):
        deadline = Deadline.after(30, operation="pivot")
        assert deadline.timeout_seconds == 30
        assert 0 < deadline.remaining() <= 30
        assert not deadline.is_expired()
        deadline.check()

    def test_negative_timeout(self):
        with pytest.raises(ValueError):
            Deadline.after(-1)

    def test_unbounded(self):
        deadline = Deadline.unbounded()
        assert deadline.remaining() is None
        assert not deadline.should_stop()

    def test_expired(self):
        deadline = Deadline.after(0, operation="pivot")
        assert deadline.is_expired()
        with pytest.raises(DeadlineExceeded) as exc:
            deadline.check()
        assert exc.value.operation == "pivot"

    def test_cancel(self):
        deadline = Deadline.after(30, operation="pivot")
        deadline.cancel()
        assert deadline.cancelled
        with pytest.raises(QueryCancelled) as exc:
            deadline.check("store")
        assert not isinstance(exc.value, DeadlineExceeded)
        assert "'store' was cancelled" in str(exc.value)

    def test_cancel_from_other_thread(self):
        deadline = Deadline.unbounded()
        worker = threading.Thread(target=deadline.cancel)
        worker.start()
        worker.join()
        assert deadline.should_stop()


class TestGuardQuery:
    def test_passes_through(self):
        conn = SqliteConnection(":memory:")
        with guard_query(conn, Deadline.after(30)):
            conn.execute("SELECT 1")
            assert conn.fetchone()[0] == 1
        conn.close()

    def test_checks_before_running(self):
        conn = SqliteConnection(":memory:")
        ran = []
        with pytest.raises(DeadlineExceeded):
            with guard_query(conn, Deadline.after(0), "list_latest_records"):
                ran.append(True)
        assert ran == []
        conn.close()

    def test_interrupts_running_statement(self):
        conn = SqliteConnection(":memory:")
        with pytest.raises(DeadlineExceeded) as exc:
            with guard_query(conn, Deadline.after(0.05), "slow_read"):
                conn.execute(_SLOW_SQL)
        assert isinstance(exc.value.__cause__, sqlite3.OperationalError)
        # the handler is removed afterwards
        conn.execute("SELECT 1")
        conn.close()

    def test_cancel_interrupts(self):
        conn = SqliteConnection(":memory:")
        deadline = Deadline.unbounded()
        timer = threading.Timer(0.05, deadline.cancel)
        timer.start()
        try:
            with pytest.raises(QueryCancelled):
                with guard_query(conn, deadline):
                    conn.execute(_SLOW_SQL)
        finally:
            timer.cancel()
            conn.close()

    def test_driver_errors_are_not_relabelled(self):
        conn = SqliteConnection(":memory:")
        with pytest.raises(sqlite3.OperationalError):
            with guard_query(conn, Deadline.after(30)):
                conn.execute("SELECT * FROM missing_table")
        conn.close()

    def test_non_sqlite_connection(self):
        class Plain:
            pass

        with guard_query(Plain(), Deadline.unbounded()):
            pass


class _PgTimeout(Exception):
    pgcode = "57014"


def _pg_bridge():
    session = MagicMock()
    session.get_bind.return_value.dialect.name = "postgresql"
    return SAConnectionBridge(session), session


class TestStatementTimeout:
    def test_bridge_sets_local_timeout_from_remaining_time(self):
        bridge, session = _pg_bridge()
        with guard_query(bridge, Deadline.after(5)):
            pass
        stmt = session.execute.call_args.args[0]
        assert str(stmt).startswith("SET LOCAL statement_timeout = ")
        millis = int(str(stmt).rsplit(" ", 1)[-1])
        assert 0 < millis <= 5000

    def test_unbounded_deadline_sets_nothing(self):
        bridge, session = _pg_bridge()
        with guard_query(bridge, Deadline.unbounded()):
            pass
        session.execute.assert_not_called()

    def test_other_backends_skip_the_timeout(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = "sqlite"
        with guard_query(SAConnectionBridge(session), Deadline.after(5)):
            pass
        session.execute.assert_not_called()

    def test_server_timeout_becomes_deadline_exceeded(self):
        bridge, session = _pg_bridge()
        with pytest.raises(DeadlineExceeded) as exc:
            with guard_query(bridge, Deadline.after(5), "list_latest_records"):
                raise OperationalError("SELECT ...", {}, _PgTimeout("canceling statement"))
        assert isinstance(exc.value.__cause__, OperationalError)
        session.rollback.assert_called_once()

    def test_other_server_errors_propagate(self):
        bridge, _ = _pg_bridge()
        with pytest.raises(OperationalError):
            with guard_query(bridge, Deadline.after(5)):
                raise OperationalError("SELECT ...", {}, RuntimeError("connection reset"))

    def test_is_statement_timeout(self):
        assert is_statement_timeout(OperationalError("q", {}, _PgTimeout()))
        assert not is_statement_timeout(OperationalError("q", {}, RuntimeError()))
        assert not is_statement_timeout(ValueError())
