"""API routers package.

Each router module owns one API area and delegates to
``reviewpivot.ops`` for business logic.

Tags:
    review-pivot, api, routers, REST

Doc-Types:
    api-reference
"""
