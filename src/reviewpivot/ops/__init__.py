"""
Operations layer: transport-agnostic entry points for review-pivot.

- All functions accept ``OperationContext`` as first argument
- All functions return ``OperationResult[T]`` (never raise)
- All functions are transport-agnostic (no HTTP, no CLI knowledge)
- Write operations support ``dry_run`` mode for safe previews

Usage::

    from reviewpivot.ops import OperationContext
    from reviewpivot.ops.assets import list_asset_pivots
    from reviewpivot.ops.requests import ListAssetPivotsRequest

    ctx = OperationContext(conn=my_connection)
    result = list_asset_pivots(ctx, ListAssetPivotsRequest(project="demo", sort="mdl_take"))
    assert result.success
"""

from reviewpivot.ops.context import OperationContext
from reviewpivot.ops.result import OperationError, OperationResult, PagedResult, PivotPagedResult
from reviewpivot.ops.sqlite_conn import SqliteConnection

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
    "PagedResult",
    "PivotPagedResult",
    "SqliteConnection",
]
