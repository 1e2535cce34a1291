"""
Asset review operations.

Wraps the pivot engine and the review-info repository with typed
request/response contracts.  Every function returns a result envelope and
never raises; exceptions are mapped to stable error codes:

    ValidationError              → VALIDATION_FAILED  (details.field)
    DeadlineExceeded             → DEADLINE_EXCEEDED  (retryable)
    QueryCancelled               → CANCELLED
    driver / store errors        → STORE_ERROR        (message verbatim)
    anything else                → INTERNAL
"""

from __future__ import annotations

import sqlite3
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError

from reviewpivot.core.errors import (
    DeadlineExceeded,
    ErrorCategory,
    QueryCancelled,
    StorageError,
    ValidationError,
    is_retryable,
)
from reviewpivot.core.logging import get_logger
from reviewpivot.ops.context import OperationContext
from reviewpivot.ops.requests import GetAssetHistoryRequest, ListAssetPivotsRequest, ListAssetsRequest
from reviewpivot.ops.responses import AssetSummary
from reviewpivot.ops.result import OperationResult, PagedResult, PivotPagedResult, _Timer, start_timer
from reviewpivot.pivot.engine import PivotEngine
from reviewpivot.pivot.models import ReviewRecord
from reviewpivot.pivot.phases import parse_phase
from reviewpivot.pivot.query import build_pivot_query
from reviewpivot.pivot.resolver import resolve_latest
from reviewpivot.pivot.store import ReviewInfoRepository

logger = get_logger(__name__)

R = TypeVar("R", bound=OperationResult)

STORE_ERRORS: tuple[type[Exception], ...] = (
    sqlite3.Error,
    SQLAlchemyError,
    StorageError,
    ConnectionError,
)


def _repo(ctx: OperationContext) -> ReviewInfoRepository:
    """Create a ReviewInfoRepository bound to the context's deadline."""
    return ReviewInfoRepository(ctx.conn, ctx.dialect, deadline=ctx.deadline)


def _fail(
    cls: type[R],
    exc: Exception,
    timer: _Timer,
    *,
    operation: str,
    warnings: list[str] | None = None,
) -> R:
    """Map *exc* onto a failed envelope of type *cls*."""
    if isinstance(exc, ValidationError):
        details = {"field": exc.field} if exc.field else {}
        if exc.constraint:
            details["constraint"] = exc.constraint
        return cls.fail(
            "VALIDATION_FAILED",
            exc.message,
            category=ErrorCategory.VALIDATION,
            details=details,
            warnings=warnings,
            elapsed_ms=timer.elapsed_ms,
        )

    if isinstance(exc, DeadlineExceeded):
        logger.warning("op_deadline_exceeded", operation=operation, error=exc.message)
        return cls.fail(
            "DEADLINE_EXCEEDED",
            exc.message,
            category=ErrorCategory.CANCELLED,
            retryable=True,
            warnings=warnings,
            elapsed_ms=timer.elapsed_ms,
        )

    if isinstance(exc, QueryCancelled):
        logger.info("op_cancelled", operation=operation)
        return cls.fail(
            "CANCELLED",
            exc.message,
            category=ErrorCategory.CANCELLED,
            warnings=warnings,
            elapsed_ms=timer.elapsed_ms,
        )

    logger.exception("op_failed", operation=operation, error=str(exc))
    if isinstance(exc, STORE_ERRORS):
        return cls.fail(
            "STORE_ERROR",
            str(exc),
            category=ErrorCategory.DATABASE,
            details={"exception": type(exc).__name__},
            retryable=is_retryable(exc),
            warnings=warnings,
            elapsed_ms=timer.elapsed_ms,
        )
    return cls.fail(
        "INTERNAL",
        f"Failed to {operation.replace('_', ' ')}: {exc}",
        category=ErrorCategory.INTERNAL,
        details={"exception": type(exc).__name__},
        warnings=warnings,
        elapsed_ms=timer.elapsed_ms,
    )


def list_asset_pivots(
    ctx: OperationContext,
    request: ListAssetPivotsRequest,
) -> PivotPagedResult:
    """One page of asset pivots with per-phase review state.

    Args:
        ctx: Operation context with connection, dialect and deadline.
        request: Raw query values from the transport.

    Returns:
        :class:`PivotPagedResult` with ``data`` (page rows), ``groups``
        (grouped view only), ``total`` and the echoed effective query.
    """
    timer = start_timer()
    warnings: list[str] = []

    try:
        query, warnings = build_pivot_query(
            project=request.project,
            root=request.root,
            page=request.page,
            per_page=request.per_page,
            sort=request.sort,
            direction=request.direction,
            phase=request.phase,
            name=request.name,
            name_match=request.name_match,
            approval_statuses=request.approval_statuses,
            work_statuses=request.work_statuses,
            view=request.view,
            max_per_page=request.max_per_page,
            max_rows=request.max_rows,
        )
        page = PivotEngine(_repo(ctx), max_rows=request.max_rows).run(query, ctx.deadline)
    except Exception as exc:
        return _fail(PivotPagedResult, exc, timer, operation="list_asset_pivots", warnings=warnings)

    return PivotPagedResult.from_page(
        page,
        warnings=[*warnings, *page.warnings],
        elapsed_ms=timer.elapsed_ms,
    )


def list_assets(
    ctx: OperationContext,
    request: ListAssetsRequest,
) -> PagedResult[AssetSummary]:
    """Distinct assets (name + relation) that have active review records."""
    timer = start_timer()

    if not request.project:
        return PagedResult.fail(
            "VALIDATION_FAILED",
            "project is required",
            category=ErrorCategory.VALIDATION,
            details={"field": "project"},
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        rows, total = _repo(ctx).list_assets(
            request.project,
            request.root,
            limit=request.limit,
            offset=request.offset,
        )
    except Exception as exc:
        return _fail(PagedResult, exc, timer, operation="list_assets")

    summaries = [
        AssetSummary(
            name=row["name"],
            relation=row["relation"] or "",
            phase_count=int(row["phase_count"] or 0),
            last_modified_at_utc=row["last_modified_at_utc"],
        )
        for row in rows
    ]
    return PagedResult.from_items(
        summaries,
        total=total,
        limit=request.limit,
        offset=request.offset,
        elapsed_ms=timer.elapsed_ms,
    )


def get_asset_history(
    ctx: OperationContext,
    request: GetAssetHistoryRequest,
) -> OperationResult[list[ReviewRecord]]:
    """Active review records of one asset, newest first.

    With ``request.latest_only`` only the latest record of each phase is
    returned, still newest first.
    """
    timer = start_timer()

    if not request.project or not request.name:
        missing = "project" if not request.project else "name"
        return OperationResult.fail(
            "VALIDATION_FAILED",
            f"{missing} is required",
            category=ErrorCategory.VALIDATION,
            details={"field": missing},
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        phase = parse_phase(request.phase)
    except ValueError as exc:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            str(exc),
            category=ErrorCategory.VALIDATION,
            details={"field": "phase"},
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        records = _repo(ctx).list_asset_history(
            request.project,
            request.root,
            request.name,
            request.relation,
            phase=phase.value if phase else None,
        )
        if request.latest_only:
            records = resolve_latest(records)
    except Exception as exc:
        return _fail(OperationResult, exc, timer, operation="get_asset_history")

    if not records:
        return OperationResult.fail(
            "NOT_FOUND",
            f"No review records for asset '{request.name}'"
            + (f" ({request.relation})" if request.relation else ""),
            elapsed_ms=timer.elapsed_ms,
        )
    return OperationResult.ok(records, elapsed_ms=timer.elapsed_ms)
