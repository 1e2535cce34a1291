"""API schemas package.

Tags:
    review-pivot, api, schemas, pydantic

Doc-Types:
    api-reference
"""

from reviewpivot.api.schemas.common import (
    ErrorDetail,
    Link,
    PagedResponse,
    PageMeta,
    ProblemDetail,
    SuccessResponse,
)

__all__ = [
    "ErrorDetail",
    "Link",
    "PageMeta",
    "PagedResponse",
    "ProblemDetail",
    "SuccessResponse",
]
