"""
API-specific settings.

Extends :class:`~reviewpivot.core.settings.PivotBaseSettings` with the
parameters that govern the REST transport (prefix, CORS, paging limits,
query deadline, database URL).

All values can be overridden via environment variables prefixed with
``REVIEWPIVOT_`` (``REVIEWPIVOT_DATABASE_URL``, ``REVIEWPIVOT_MAX_PER_PAGE``).
"""

from __future__ import annotations

from pydantic import Field

from reviewpivot.core.settings import PivotBaseSettings
from reviewpivot.pivot.query import DEFAULT_MAX_ROWS, DEFAULT_PER_PAGE, MAX_PER_PAGE


class ReviewPivotAPISettings(PivotBaseSettings):
    """Settings for the review-pivot REST API.

    Order of precedence (highest → lowest):
        1. Environment variables (``REVIEWPIVOT_API_PREFIX``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api/v1", description="URL prefix for all endpoints")
    api_title: str = Field(default="review-pivot API", description="OpenAPI title")
    api_version: str = Field(default="0.1.0", description="OpenAPI version string")

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///review_pivot.db",
        description="Connection URL (sqlite:///path, postgresql://..., memory)",
    )
    auto_init_schema: bool = Field(
        default=True,
        description="Apply the bundled schema on startup (CREATE TABLE IF NOT EXISTS)",
    )

    # ── Query limits ─────────────────────────────────────────────────────
    default_per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1, description="Default page size")
    max_per_page: int = Field(default=MAX_PER_PAGE, ge=1, description="Largest accepted page size")
    max_rows: int = Field(
        default=DEFAULT_MAX_ROWS,
        ge=1,
        description="Assets assembled per request before the result is truncated",
    )
    query_timeout_seconds: float | None = Field(
        default=7.0,
        ge=0,
        description="Per-request deadline for pivot queries (None disables it)",
    )

    # ── CORS ─────────────────────────────────────────────────────────────
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )
