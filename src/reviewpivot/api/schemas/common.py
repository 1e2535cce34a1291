"""
Common API schemas: shared envelopes and RFC 7807 errors.

Every endpoint returns either :class:`SuccessResponse` or
:class:`ProblemDetail` (4xx/5xx).  Paged endpoints embed :class:`PageMeta`
alongside the item list.

Response Envelope Conventions:
    - All 2xx responses use ``SuccessResponse[T]`` or ``PagedResponse[T]``
    - All 4xx/5xx responses use ``ProblemDetail`` (RFC 7807)
    - ``elapsed_ms`` tracks server-side processing time
    - ``warnings`` carries compatibility fallbacks (unknown sort key, etc.)

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# ── Links ────────────────────────────────────────────────────────────────


class Link(BaseModel):
    """Hypermedia link for page navigation."""

    rel: str = Field(description="Link relation ('first', 'prev', 'next', 'last')")
    href: str = Field(description="Target URL")
    method: str = Field(default="GET", description="HTTP method for this link")


# ── RFC 7807 Problem Detail ─────────────────────────────────────────────


class ErrorDetail(BaseModel):
    """Structured error detail for field-level errors."""

    code: str = Field(description="Machine-readable error code (e.g., 'VALIDATION_FAILED')")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Query parameter the error refers to")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Error Codes:
        - ``VALIDATION_FAILED`` (400): Malformed query parameter
        - ``NOT_FOUND`` (404): No records for the requested asset
        - ``CANCELLED`` (499): Request cancelled before completion
        - ``INTERNAL`` (500): Unexpected server error
        - ``STORE_ERROR`` (503): Record store unavailable or failing
        - ``DEADLINE_EXCEEDED`` (504): Query ran past its deadline

    Example:
        {
            "type": "about:blank",
            "title": "per_page must be between 1 and 200",
            "status": 400,
            "detail": "",
            "instance": "/api/v1/projects/demo/reviews/assets/pivot?per_page=0",
            "errors": [{"code": "VALIDATION_FAILED", "message": "...", "field": "per_page"}]
        }
    """

    type: str = Field(default="about:blank", description="Error type URI (usually 'about:blank')")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code (e.g., 400, 404, 500)")
    detail: str = Field(default="", description="Human-readable explanation of the error")
    instance: str = Field(default="", description="URI of the failing request")
    errors: list[ErrorDetail] = Field(
        default_factory=list,
        description="List of field-level error details",
    )


# ── Success Envelopes ────────────────────────────────────────────────────


class PageMeta(BaseModel):
    """Pagination metadata for list responses."""

    total: int = Field(description="Total items across all pages")
    limit: int = Field(description="Items per page (requested)")
    offset: int = Field(description="Current offset (0-based)")
    has_more: bool = Field(description="True if more pages exist after current")

    page: int = Field(default=1, description="Current page number (1-indexed)")
    total_pages: int = Field(default=1, description="Total number of pages")
    has_prev: bool = Field(default=False, description="True if previous page exists")

    @classmethod
    def from_result(
        cls,
        total: int,
        limit: int,
        offset: int,
        *,
        page: int | None = None,
    ) -> PageMeta:
        """Factory that auto-computes derived fields."""
        total_pages = max(1, (total + limit - 1) // limit)
        current_page = page if page is not None else (offset // limit) + 1
        return cls(
            total=total,
            limit=limit,
            offset=offset,
            has_more=(offset + limit) < total,
            page=current_page,
            total_pages=total_pages,
            has_prev=current_page > 1,
        )


class SuccessResponse(BaseModel, Generic[T]):
    """Standard success envelope for single-item responses."""

    data: T = Field(description="Response payload (type varies by endpoint)")
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time in milliseconds")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal warnings to display to users",
    )


class PagedResponse(BaseModel, Generic[T]):
    """Paged success envelope for list responses."""

    data: list[T] = Field(description="List of items for this page")
    page: PageMeta = Field(description="Pagination metadata")
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time in milliseconds")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal warnings to display to users",
    )
    links: list[Link] = Field(
        default_factory=list,
        description="Navigation links (first, prev, next, last)",
    )
