"""
REST API layer for review-pivot.

Provides a FastAPI application factory with typed endpoints that delegate
to the operations layer (``reviewpivot.ops``).  This package handles only
HTTP transport concerns: serialisation, error mapping, paging links and
request context.

Quick start::

    from reviewpivot.api import create_app

    app = create_app()  # ready for uvicorn

Tags:
    review-pivot, api, REST, FastAPI, transport-layer

Doc-Types:
    api-reference
"""

from reviewpivot.api.app import create_app

__all__ = ["create_app"]
