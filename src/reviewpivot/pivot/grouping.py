"""
Grouping and pagination.

Flat view
    filter → sort → count → slice ``[offset, offset + limit)``.

Grouped view
    1. sort the whole matching set by name/relation in the requested
       direction (phase-qualified keys and the preferred-phase bias do not
       apply here)
    2. bucket by trimmed ``top_group_node``; blank becomes ``"Unassigned"``
    3. order buckets A→Z case-insensitively, ``"Unassigned"`` last, in
       both directions
    4. flatten, slice, and re-bucket only the sliced rows; every bucket
       keeps its ``total_count`` from step 2

An offset at or past the total returns an empty page, not an error.
"""

from __future__ import annotations

from collections.abc import Sequence

from reviewpivot.pivot.models import UNASSIGNED, AssetPivot, GroupedAssetBucket
from reviewpivot.pivot.ordering import sort_pivots
from reviewpivot.pivot.query import NAME_ASC, SortDirection


def bucket_label(pivot: AssetPivot) -> str:
    node = (pivot.top_group_node or "").strip()
    return node or UNASSIGNED


def _bucket_order(label: str) -> tuple[bool, str, str]:
    return (label == UNASSIGNED, label.casefold(), label)


def group_by_top_node(
    pivots: Sequence[AssetPivot],
    direction: SortDirection = SortDirection.ASC,
) -> list[GroupedAssetBucket]:
    """Bucket *pivots* by top group node.

    Items inside a bucket are ordered by name in *direction*; bucket order
    ignores *direction*.
    """
    members: dict[str, list[AssetPivot]] = {}
    for pivot in sort_pivots(pivots, NAME_ASC, direction):
        members.setdefault(bucket_label(pivot), []).append(pivot)

    return [
        GroupedAssetBucket(
            top_group_node=label,
            items=tuple(members[label]),
            total_count=len(members[label]),
        )
        for label in sorted(members, key=_bucket_order)
    ]


def paginate_flat(
    pivots: Sequence[AssetPivot], offset: int, limit: int
) -> tuple[list[AssetPivot], int]:
    """``(page, total)`` for an already ordered sequence."""
    total = len(pivots)
    if offset >= total:
        return [], total
    return list(pivots[offset : offset + limit]), total


def paginate_grouped(
    pivots: Sequence[AssetPivot],
    offset: int,
    limit: int,
    direction: SortDirection = SortDirection.ASC,
) -> tuple[list[GroupedAssetBucket], int]:
    """``(page buckets, total)`` for the grouped view."""
    buckets = group_by_top_node(pivots, direction)
    totals = {b.top_group_node: b.total_count for b in buckets}
    flat = [(b.top_group_node, item) for b in buckets for item in b.items]

    total = len(flat)
    if offset >= total:
        return [], total

    page_members: dict[str, list[AssetPivot]] = {}
    for label, item in flat[offset : offset + limit]:
        page_members.setdefault(label, []).append(item)

    return [
        GroupedAssetBucket(
            top_group_node=label,
            items=tuple(items),
            total_count=totals[label],
        )
        for label, items in page_members.items()
    ], total
