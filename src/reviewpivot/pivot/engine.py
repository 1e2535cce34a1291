"""
Pivot engine: one query in, one page out.

Pipeline::

    PivotQuery
      │ validate()
      ▼
    store.list_latest_records(RecordQuery)      latest per (asset, phase)
      │ resolve_latest()                         idempotent re-rank
      ▼
    assemble_pivots(records, store.list_group_paths())
      │ max_rows cap                             truncated + warning
      ▼
    apply_filters()                              name, status
      │
      ├── list view:    sort_pivots() → paginate_flat()
      └── grouped view: paginate_grouped()
      ▼
    PivotPage

The deadline is checked between stages; the store checks it during reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from reviewpivot.core.deadline import Deadline
from reviewpivot.core.logging import get_logger
from reviewpivot.pivot.assembler import assemble_pivots
from reviewpivot.pivot.filters import apply_filters
from reviewpivot.pivot.grouping import paginate_flat, paginate_grouped
from reviewpivot.pivot.models import AssetPivot, GroupedAssetBucket
from reviewpivot.pivot.ordering import sort_pivots
from reviewpivot.pivot.query import DEFAULT_MAX_ROWS, PivotQuery, RecordQuery, ViewMode
from reviewpivot.pivot.resolver import resolve_latest
from reviewpivot.pivot.store import ReviewRecordStore

logger = get_logger(__name__)


@dataclass
class PivotPage:
    """One page of pivots.

    ``items`` holds the page rows in display order for both views; in the
    grouped view ``groups`` holds the same rows bucketed.
    """

    query: PivotQuery
    items: list[AssetPivot] = field(default_factory=list)
    groups: list[GroupedAssetBucket] | None = None
    total: int = 0
    truncated: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def offset(self) -> int:
        return self.query.offset

    @property
    def limit(self) -> int:
        return self.query.limit

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


class PivotEngine:
    """Runs :class:`PivotQuery` objects against a record store."""

    def __init__(self, store: ReviewRecordStore, *, max_rows: int = DEFAULT_MAX_ROWS) -> None:
        self.store = store
        self.max_rows = max_rows

    def run(self, query: PivotQuery, deadline: Deadline | None = None) -> PivotPage:
        query.validate()
        deadline = deadline or Deadline.unbounded()
        warnings: list[str] = []

        deadline.check("pivot")
        records = resolve_latest(self.store.list_latest_records(RecordQuery.for_pivot(query)))
        deadline.check("pivot")
        group_paths = self.store.list_group_paths(query.project, query.root)

        pivots = assemble_pivots(records, group_paths)
        cap = min(self.max_rows, query.max_rows)
        truncated = len(pivots) > cap
        if truncated:
            logger.warning("pivot_truncated", assets=len(pivots), max_rows=cap)
            warnings.append(f"result truncated to {cap} assets")
            pivots = pivots[:cap]

        deadline.check("pivot")
        matching = apply_filters(pivots, query)

        groups: list[GroupedAssetBucket] | None = None
        if query.view is ViewMode.GROUPED:
            groups, total = paginate_grouped(matching, query.offset, query.limit, query.direction)
            items = [item for bucket in groups for item in bucket.items]
        else:
            ordered = sort_pivots(matching, query.sort, query.direction, query.preferred_phase)
            items, total = paginate_flat(ordered, query.offset, query.limit)

        logger.debug(
            "pivot_page_built",
            project=query.project,
            records=len(records),
            assets=len(pivots),
            matching=total,
            returned=len(items),
            view=query.view.value,
        )
        return PivotPage(
            query=query,
            items=items,
            groups=groups,
            total=total,
            truncated=truncated,
            warnings=warnings,
        )
