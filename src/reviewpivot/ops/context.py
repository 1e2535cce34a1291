"""
Request-scoped context for operations.

Every operation function receives an :class:`OperationContext` as its first
argument.  The context carries the database connection and its dialect,
the request deadline, caller identity, dry-run flag, and arbitrary
metadata.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from reviewpivot.core.deadline import Deadline
from reviewpivot.core.dialect import Dialect, SQLiteDialect
from reviewpivot.core.protocols import Connection


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        conn: Database connection satisfying :class:`reviewpivot.core.protocols.Connection`.
        dialect: SQL dialect of *conn*.  Defaults to SQLite.
        deadline: Request deadline; ``None`` means unbounded.  Cancelling it
            aborts the running query.
        request_id: Unique ID for this operation invocation (auto-generated).
        caller: Origin of the request: ``"api"``, ``"cli"`` or ``"sdk"``.
        dry_run: When ``True``, write operations return a preview without side effects.
        metadata: Arbitrary key/value pairs forwarded to logging.
    """

    conn: Connection
    dialect: Dialect = field(default_factory=SQLiteDialect)
    deadline: Deadline | None = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    dry_run: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
