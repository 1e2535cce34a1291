"""
FastAPI dependency injection: shared singletons and per-request factories.

Usage in routers::

    from reviewpivot.api.deps import OpContext, Settings

    @router.get("/things")
    def list_things(ctx: OpContext, settings: Settings):
        ...

Tags:
    review-pivot, api, dependency-injection, OpContext

Doc-Types:
    api-reference
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, Request

from reviewpivot.api.settings import ReviewPivotAPISettings
from reviewpivot.core.connection import ConnectionInfo, create_connection
from reviewpivot.core.deadline import Deadline
from reviewpivot.ops.context import OperationContext

# ── Settings (singleton) ─────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_settings() -> ReviewPivotAPISettings:
    """Cached settings, loaded once per process."""
    return ReviewPivotAPISettings()


# ── Database connection (per-request) ────────────────────────────────────


@dataclass(frozen=True, slots=True)
class OpenConnection:
    conn: Any
    info: ConnectionInfo


def get_connection(
    settings: Annotated[ReviewPivotAPISettings, Depends(get_settings)],
) -> Generator[OpenConnection, None, None]:
    """Yield a database connection for the request lifespan.

    SQLite URLs connect directly; PostgreSQL goes through the SQLAlchemy
    bridge.
    """
    conn, info = create_connection(
        settings.database_url,
        data_dir=settings.data_dir,
    )

    try:
        yield OpenConnection(conn, info)
    finally:
        if hasattr(conn, "close"):
            conn.close()


# ── Operation context (per-request) ──────────────────────────────────────


def get_operation_context(
    request: Request,
    connection: Annotated[OpenConnection, Depends(get_connection)],
    settings: Annotated[ReviewPivotAPISettings, Depends(get_settings)],
) -> OperationContext:
    """Build an :class:`OperationContext` from the current request.

    Each request gets its own :class:`Deadline` from
    ``settings.query_timeout_seconds``.
    """
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    if settings.query_timeout_seconds:
        deadline = Deadline.after(settings.query_timeout_seconds, operation="request")
    else:
        deadline = Deadline.unbounded(operation="request")
    return OperationContext(
        conn=connection.conn,
        dialect=connection.info.dialect,
        deadline=deadline,
        request_id=request_id,
        caller="api",
    )


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[ReviewPivotAPISettings, Depends(get_settings)]
Conn = Annotated[OpenConnection, Depends(get_connection)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
