"""
Database operations.

Thin wrappers around ``reviewpivot.core.schema_loader`` for table creation,
fixture loading and health checks.
"""

from __future__ import annotations

import time

from reviewpivot.core.errors import ErrorCategory, ValidationError
from reviewpivot.core.logging import get_logger
from reviewpivot.core.schema_loader import apply_all_schemas, get_table_list
from reviewpivot.ops.context import OperationContext
from reviewpivot.ops.requests import DatabaseInitRequest, LoadRecordsRequest
from reviewpivot.ops.responses import DatabaseHealth, DatabaseInitResult, LoadResult
from reviewpivot.ops.result import OperationResult, start_timer
from reviewpivot.pivot.store import ReviewInfoRepository

logger = get_logger(__name__)

BUNDLED_TABLES = ["t_review_info", "t_group_category", "t_group_category_group"]


def initialize_database(
    ctx: OperationContext,
    request: DatabaseInitRequest | None = None,
) -> OperationResult[DatabaseInitResult]:
    """Create the review tables (idempotent)."""
    request = request or DatabaseInitRequest()
    timer = start_timer()

    if ctx.dry_run:
        return OperationResult.ok(
            DatabaseInitResult(tables_created=list(BUNDLED_TABLES), dry_run=True),
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        apply_all_schemas(ctx.conn, request.schema_dir)
        tables = get_table_list(ctx.conn, ctx.dialect)
        return OperationResult.ok(
            DatabaseInitResult(tables_created=tables),
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL",
            f"Failed to create tables: {exc}",
            elapsed_ms=timer.elapsed_ms,
        )


def load_review_records(
    ctx: OperationContext,
    request: LoadRecordsRequest,
) -> OperationResult[LoadResult]:
    """Insert review rows and group categories from a fixture payload.

    Everything is inserted in one transaction; a failure rolls it back.
    """
    timer = start_timer()

    if ctx.dry_run:
        return OperationResult.ok(
            LoadResult(
                review_infos=len(request.review_infos),
                group_categories=len(request.group_categories),
                group_category_groups=len(request.group_category_groups),
                dry_run=True,
            ),
            elapsed_ms=timer.elapsed_ms,
        )

    repo = ReviewInfoRepository(ctx.conn, ctx.dialect)
    try:
        reviews = repo.insert_review_rows(request.review_infos)
        categories, memberships = repo.insert_group_categories(
            request.group_categories,
            request.group_category_groups,
        )
        repo.commit()
    except (ValidationError, KeyError) as exc:
        ctx.conn.rollback()
        field = exc.field if isinstance(exc, ValidationError) else str(exc).strip("'")
        message = exc.message if isinstance(exc, ValidationError) else f"missing field {field!r}"
        return OperationResult.fail(
            "VALIDATION_FAILED",
            message,
            category=ErrorCategory.VALIDATION,
            details={"field": field},
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        ctx.conn.rollback()
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL",
            f"Failed to load records: {exc}",
            elapsed_ms=timer.elapsed_ms,
        )

    logger.info(
        "records_loaded",
        review_infos=reviews,
        group_categories=categories,
        group_category_groups=memberships,
    )
    return OperationResult.ok(
        LoadResult(
            review_infos=reviews,
            group_categories=categories,
            group_category_groups=memberships,
        ),
        elapsed_ms=timer.elapsed_ms,
    )


def check_database_health(ctx: OperationContext) -> OperationResult[DatabaseHealth]:
    """Check database connectivity and table status."""
    timer = start_timer()

    try:
        start = time.perf_counter()
        ctx.conn.execute("SELECT 1")
        ctx.conn.fetchone()
        latency = (time.perf_counter() - start) * 1000
        tables = get_table_list(ctx.conn, ctx.dialect)

        return OperationResult.ok(
            DatabaseHealth(
                connected=True,
                backend=ctx.dialect.name,
                table_count=len(tables),
                latency_ms=round(latency, 2),
            ),
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.ok(
            DatabaseHealth(connected=False, backend=ctx.dialect.name),
            warnings=[f"Health check error: {exc}"],
            elapsed_ms=timer.elapsed_ms,
        )
