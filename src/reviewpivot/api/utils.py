"""
Shared API router utilities.

- ``_dc()``: convert a dataclass or dict to a plain dict
- ``_handle_error()``: convert a failed OperationResult to a ``problem_response``
- ``page_links()`` / ``link_header()``: RFC 5988 paging links

Tags:
    review-pivot, api, utils, paging

Doc-Types: API_INFRASTRUCTURE
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from reviewpivot.api.middleware.errors import problem_response, status_for_error_code
from reviewpivot.api.schemas.common import Link


def _dc(obj: Any) -> dict[str, Any]:
    """Convert a dataclass (or dict) to a plain dict.

    Returns an empty dict for objects that are neither dataclasses nor dicts.
    """
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    return obj if isinstance(obj, dict) else {}


def _handle_error(result, request: Request | None = None) -> JSONResponse:
    """Convert a failed ``OperationResult`` into a Problem Details response.

    The error code picks the HTTP status; a ``field`` in the error details
    becomes an ``errors[]`` entry.
    """
    error = result.error
    code = error.code if error else "INTERNAL"
    errors = None
    if error and error.details.get("field"):
        errors = [{"code": code, "message": error.message, "field": error.details["field"]}]
    return problem_response(
        status=status_for_error_code(code),
        title=error.message if error else "Operation failed",
        detail=code,
        instance=str(request.url) if request is not None else "",
        errors=errors,
    )


def page_links(request: Request, *, page: int, per_page: int, total: int) -> list[Link]:
    """``first``/``prev``/``next``/``last`` links for a paged response.

    ``first`` and ``prev`` appear after page 1, ``next`` and ``last``
    before the last page.  No links for an empty result.
    """
    if total <= 0:
        return []
    last = max(1, (total + per_page - 1) // per_page)

    def href(target: int) -> str:
        return str(request.url.include_query_params(page=target, per_page=per_page))

    links: list[Link] = []
    if page > 1:
        links.append(Link(rel="first", href=href(1)))
        links.append(Link(rel="prev", href=href(min(page - 1, last))))
    if page < last:
        links.append(Link(rel="next", href=href(page + 1)))
        links.append(Link(rel="last", href=href(last)))
    return links


def link_header(links: list[Link]) -> str:
    """Render links as an RFC 5988 ``Link`` header value."""
    return ", ".join(f'<{link.href}>; rel="{link.rel}"' for link in links)
