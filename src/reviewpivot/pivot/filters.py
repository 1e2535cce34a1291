"""
Cross-phase filtering of assembled pivots.

Name filter
    Case-insensitive match on the asset name: prefix by default,
    substring with ``NameMatch.CONTAINS``, whole name with ``EXACT``.

Status filter
    ``phase-locked`` (a preferred phase is set): only that phase's slot is
    checked.  With both sets given the slot passes when its approval status
    *or* its work status is allowed; with one set, that set decides.  An
    asset with no record in that phase fails.

    ``any-phase`` (no preferred phase): each non-empty allowed set is
    checked across all five slots on its own, and every set must be hit.
    The approval hit and the work hit may come from different phases.
"""

from __future__ import annotations

from collections.abc import Iterable

from reviewpivot.pivot.models import AssetPivot, PhaseSlot
from reviewpivot.pivot.phases import Phase
from reviewpivot.pivot.query import NameMatch, PivotQuery, StatusFilter


def _norm(value: str | None) -> str:
    return (value or "").strip().lower()


def matches_name(pivot: AssetPivot, needle: str | None, mode: NameMatch = NameMatch.PREFIX) -> bool:
    if not needle:
        return True
    name = pivot.name.lower()
    needle = needle.strip().lower()
    if mode is NameMatch.CONTAINS:
        return needle in name
    if mode is NameMatch.EXACT:
        return name == needle
    return name.startswith(needle)


def slot_matches(slot: PhaseSlot, statuses: StatusFilter) -> bool:
    """Phase-locked check of one slot: approval OR work when both are set."""
    if not slot.is_present:
        return False
    hits = []
    if statuses.approval:
        hits.append(_norm(slot.approval_status) in statuses.approval)
    if statuses.work:
        hits.append(_norm(slot.work_status) in statuses.work)
    return any(hits)


def _any_slot(pivot: AssetPivot, allowed: frozenset[str], attr: str) -> bool:
    return any(slot.is_present and _norm(getattr(slot, attr)) in allowed for slot in pivot.slots)


def matches_status(
    pivot: AssetPivot,
    statuses: StatusFilter,
    preferred_phase: Phase | None = None,
) -> bool:
    if statuses.is_empty:
        return True
    if preferred_phase is not None:
        return slot_matches(pivot.slot(preferred_phase), statuses)
    if statuses.approval and not _any_slot(pivot, statuses.approval, "approval_status"):
        return False
    if statuses.work and not _any_slot(pivot, statuses.work, "work_status"):
        return False
    return True


def apply_filters(pivots: Iterable[AssetPivot], query: PivotQuery) -> list[AssetPivot]:
    """Pivots passing both the name and the status filter, order preserved."""
    return [
        p
        for p in pivots
        if matches_name(p, query.name_filter, query.name_match)
        and matches_status(p, query.statuses, query.preferred_phase)
    ]
