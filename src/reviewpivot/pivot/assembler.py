"""Fold latest-per-phase records into one :class:`AssetPivot` per asset."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from reviewpivot.core.logging import get_logger
from reviewpivot.pivot.models import EMPTY_SLOT, AssetKey, AssetPivot, PhaseSlot, ReviewRecord
from reviewpivot.pivot.phases import PHASES, Phase
from reviewpivot.pivot.resolver import latest_rank

logger = get_logger(__name__)


def top_group_node(category_path: str | None) -> str | None:
    """First non-blank ``/`` segment of a category path."""
    if not category_path:
        return None
    for segment in category_path.split("/"):
        if segment.strip():
            return segment.strip()
    return None


def assemble_pivots(
    records: Iterable[ReviewRecord],
    group_paths: Mapping[str, str] | None = None,
) -> list[AssetPivot]:
    """Build one pivot per asset key, in first-seen order.

    *records* should already be latest-per-phase.  If a phase still shows
    up twice for an asset the later-ranked record wins.  Records with an
    unknown phase code are ignored, so an asset that only has such records
    does not appear.

    *group_paths* maps an asset's leaf group name (``groups[0]``) to its
    category path, e.g. ``{"charA": "characters/main"}``.
    """
    group_paths = group_paths or {}
    arena: dict[AssetKey, list[ReviewRecord | None]] = {}
    skipped = 0

    for record in records:
        try:
            index = PHASES.index(Phase(record.phase.strip().lower()))
        except ValueError:
            skipped += 1
            continue
        row = arena.setdefault(record.key, [None] * len(PHASES))
        current = row[index]
        if current is None or latest_rank(record) > latest_rank(current):
            row[index] = record

    if skipped:
        logger.debug("records_with_unknown_phase_ignored", count=skipped)

    pivots = []
    for key, row in arena.items():
        leaf = key.name
        category = group_paths.get(leaf)
        pivots.append(
            AssetPivot(
                key=key,
                slots=tuple(
                    PhaseSlot.from_record(r) if r is not None else EMPTY_SLOT for r in row
                ),
                leaf_group_name=leaf,
                group_category_path=category,
                top_group_node=top_group_node(category),
            )
        )
    return pivots
