"""
Order/comparator engine.

Rows are split into tiers that keep their position in both directions:

    tier 0   present values, ordered by the key in the requested direction
    tier 1   take values without a number ("abc"), ordered
             case-insensitively in the requested direction
    tier 2   empty values (None, "", whitespace, "-", missing timestamp),
             always last

Ties inside a tier fall back to the stable secondary order: name
ascending, relation ascending (both case-insensitive), then the exact
strings, the full group tuple and the root so the order is total.  Each
tier is first sorted by the secondary key and then stable-sorted by the
primary key, which keeps ties ascending even when the primary direction
is descending.

A preferred phase moves every asset that has a record in that phase ahead
of the rest, preserving the order inside both blocks.

Example::

    # mdl takes "10", "-", "abc", "007"
    sort_pivots(rows, SortKey(SortField.TAKE, Phase.MDL))
    # -> takes "007", "10", "abc", "-"
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from reviewpivot.pivot.models import AssetPivot
from reviewpivot.pivot.phases import Phase
from reviewpivot.pivot.query import NAME_ASC, SortDirection, SortField, SortKey

_EMPTY_MARKERS = frozenset({"", "-"})
_DIGITS = re.compile(r"\d+")

TIER_PRESENT = 0
TIER_INVALID = 1
TIER_EMPTY = 2


def clean_text(value: str | None) -> str | None:
    """Trimmed value, or ``None`` for empty placeholders."""
    if value is None:
        return None
    value = value.strip()
    return None if value in _EMPTY_MARKERS else value


def take_number(value: str | None) -> int | None:
    """Numeric part of a take identifier.

    The last run of digits wins, so ``"take_0012"`` is 12 and
    ``"v2_t07"`` is 7.  Returns ``None`` when there are no digits.
    """
    text = clean_text(value)
    if text is None:
        return None
    runs = _DIGITS.findall(text)
    return int(runs[-1]) if runs else None


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def secondary_key(pivot: AssetPivot) -> tuple[Any, ...]:
    return (
        pivot.name.casefold(),
        pivot.relation.casefold(),
        pivot.name,
        pivot.relation,
        pivot.key.groups,
        pivot.key.root,
    )


def sort_value(pivot: AssetPivot, key: SortKey) -> tuple[int, Any]:
    """``(tier, comparable)`` for *pivot* under *key*."""
    if key.field is SortField.NAME:
        text = clean_text(pivot.name)
        return (TIER_EMPTY, None) if text is None else (TIER_PRESENT, text.casefold())
    if key.field is SortField.RELATION:
        text = clean_text(pivot.relation)
        return (TIER_EMPTY, None) if text is None else (TIER_PRESENT, text.casefold())

    if key.phase is None and key.field is SortField.SUBMITTED:
        stamps = [_utc(s.submitted_at_utc) for s in pivot.slots if s.submitted_at_utc is not None]
        return (TIER_EMPTY, None) if not stamps else (TIER_PRESENT, max(stamps))

    slot = pivot.slot(key.phase)
    if key.field is SortField.SUBMITTED:
        ts = slot.submitted_at_utc
        return (TIER_EMPTY, None) if ts is None else (TIER_PRESENT, _utc(ts))

    if key.field is SortField.TAKE:
        text = clean_text(slot.take)
        if text is None:
            return (TIER_EMPTY, None)
        number = take_number(text)
        if number is None:
            return (TIER_INVALID, text.casefold())
        return (TIER_PRESENT, number)

    raw = slot.work_status if key.field is SortField.WORK else slot.approval_status
    text = clean_text(raw)
    return (TIER_EMPTY, None) if text is None else (TIER_PRESENT, text.casefold())


def sort_pivots(
    pivots: Iterable[AssetPivot],
    key: SortKey = NAME_ASC,
    direction: SortDirection = SortDirection.ASC,
    preferred_phase: Phase | None = None,
) -> list[AssetPivot]:
    """Return a new list ordered by *key*, empties last, then biased."""
    base = sorted(pivots, key=secondary_key)
    reverse = direction is SortDirection.DESC

    tiers: dict[int, list[tuple[Any, AssetPivot]]] = {
        TIER_PRESENT: [],
        TIER_INVALID: [],
        TIER_EMPTY: [],
    }
    for pivot in base:
        tier, value = sort_value(pivot, key)
        tiers[tier].append((value, pivot))

    ordered: list[AssetPivot] = []
    for tier in (TIER_PRESENT, TIER_INVALID):
        bucket = tiers[tier]
        bucket.sort(key=lambda item: item[0], reverse=reverse)
        ordered.extend(pivot for _, pivot in bucket)
    ordered.extend(pivot for _, pivot in tiers[TIER_EMPTY])

    if preferred_phase is not None:
        ordered = apply_phase_bias(ordered, preferred_phase)
    return ordered


def apply_phase_bias(pivots: list[AssetPivot], phase: Phase) -> list[AssetPivot]:
    """Stable partition: assets with a *phase* record first."""
    with_phase = [p for p in pivots if p.has_phase(phase)]
    without = [p for p in pivots if not p.has_phase(phase)]
    return with_phase + without
