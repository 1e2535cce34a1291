"""API middleware package: request IDs, timing and error mapping.

Tags:
    review-pivot, api, middleware

Doc-Types:
    api-reference
"""
