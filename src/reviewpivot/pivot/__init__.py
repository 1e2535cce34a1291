"""
Asset review pivot.

Turns an append-only log of review records into one row per asset with a
fixed column group per pipeline phase (``mdl``, ``rig``, ``bld``, ``dsn``,
``ldv``), then filters, orders, groups and paginates those rows.

Entry point is :class:`~reviewpivot.pivot.engine.PivotEngine`; transports
build a :class:`~reviewpivot.pivot.query.PivotQuery` with
:func:`~reviewpivot.pivot.query.build_pivot_query`.
"""

from reviewpivot.pivot.engine import PivotEngine, PivotPage
from reviewpivot.pivot.models import AssetKey, AssetPivot, GroupedAssetBucket, PhaseSlot, ReviewRecord
from reviewpivot.pivot.phases import PHASES, Phase
from reviewpivot.pivot.query import PivotQuery, build_pivot_query
from reviewpivot.pivot.store import ReviewInfoRepository

__all__ = [
    "AssetKey",
    "AssetPivot",
    "GroupedAssetBucket",
    "PHASES",
    "Phase",
    "PhaseSlot",
    "PivotEngine",
    "PivotPage",
    "PivotQuery",
    "ReviewInfoRepository",
    "ReviewRecord",
    "build_pivot_query",
]
