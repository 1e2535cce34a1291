"""
Health router: liveness and readiness checks at the root level.

Endpoints:
    GET /health         Service status plus a database check
    GET /health/live    Liveness check, always 200
    GET /health/ready   Readiness check, 503 when the database is unreachable

Tags:
    review-pivot, api, health, checks

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

import time
from datetime import UTC, datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from reviewpivot import __version__
from reviewpivot.api.deps import OpContext

router = APIRouter(prefix="/health")

_START_TIME = time.monotonic()


class DatabaseHealthSchema(BaseModel):
    connected: bool
    backend: str = "unknown"
    table_count: int = 0
    latency_ms: float = 0.0


class HealthResponse(BaseModel):
    status: str = Field(description="'healthy' or 'unhealthy'")
    service: str = "review-pivot"
    version: str = __version__
    uptime_s: float = 0.0
    timestamp: str = ""
    database: DatabaseHealthSchema | None = None
    warnings: list[str] = Field(default_factory=list)


def _check(ctx) -> HealthResponse:
    from reviewpivot.api.utils import _dc
    from reviewpivot.ops.database import check_database_health

    result = check_database_health(ctx)
    db = DatabaseHealthSchema(**_dc(result.data))
    return HealthResponse(
        status="healthy" if db.connected else "unhealthy",
        uptime_s=round(time.monotonic() - _START_TIME, 1),
        timestamp=datetime.now(UTC).isoformat(),
        database=db,
        warnings=result.warnings,
    )


@router.get("", response_model=HealthResponse)
def health(ctx: OpContext):
    """Service status with a database round-trip."""
    body = _check(ctx)
    return JSONResponse(content=body.model_dump(), status_code=200 if body.status == "healthy" else 503)


@router.get("/live", response_model=HealthResponse)
def liveness():
    """Liveness check: the process is serving requests."""
    return HealthResponse(
        status="healthy",
        uptime_s=round(time.monotonic() - _START_TIME, 1),
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready", response_model=HealthResponse)
def readiness(ctx: OpContext):
    """Readiness check: 503 until the database answers."""
    return health(ctx)
