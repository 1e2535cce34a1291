"""
Latest-per-phase resolution.

For every (project, root, asset, phase) exactly one record survives:

1. greatest ``modified_at_utc``
2. then greatest ``submitted_at_utc`` (a missing submission loses to any)
3. then greatest ``id``

The store computes the same ranking in SQL with
``ROW_NUMBER() OVER (PARTITION BY ... ORDER BY ...)`` where the dialect
allows it.  :func:`resolve_latest` is the single-pass equivalent; the engine
always runs it on store output so downstream stages can rely on at most one
record per (asset, phase).  Running it twice changes nothing.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from reviewpivot.pivot.models import AssetKey, ReviewRecord

_NEVER = datetime.min.replace(tzinfo=UTC)


def latest_rank(record: ReviewRecord) -> tuple[datetime, bool, datetime, int]:
    """Sort key under which the latest record of a partition is the maximum."""
    submitted = record.submitted_at_utc
    return (
        record.modified_at_utc,
        submitted is not None,
        submitted or _NEVER,
        record.id,
    )


def resolve_latest(records: Iterable[ReviewRecord]) -> list[ReviewRecord]:
    """Keep the latest active record per (asset, phase).

    Deleted records are skipped.  Output follows the order in which each
    (asset, phase) partition was first seen.
    """
    best: dict[tuple[AssetKey, str], ReviewRecord] = {}
    for record in records:
        if record.deleted:
            continue
        partition = (record.key, record.phase)
        current = best.get(partition)
        if current is None or latest_rank(record) > latest_rank(current):
            best[partition] = record
    return list(best.values())
