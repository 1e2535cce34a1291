"""
review-pivot - asset review pivot engine.

Turns an append-only review log (one row per asset, phase and submission)
into a sortable, filterable, paginated asset-per-row table with one slot per
pipeline phase, optionally grouped by top-level category.

Layers:

- ``reviewpivot.core``: errors, logging, settings, connections, deadlines
- ``reviewpivot.pivot``: the pure pivot engine and the record store
- ``reviewpivot.ops``: transport-agnostic operations returning ``OperationResult``
- ``reviewpivot.api``: FastAPI transport
- ``reviewpivot.cli``: Typer command line
"""

__version__ = "0.1.0"
