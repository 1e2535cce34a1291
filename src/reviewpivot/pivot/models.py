"""
Pivot data model.

    ReviewRecord ──(latest per phase)──▶ PhaseSlot ──(×5)──▶ AssetPivot
                                                              │
                                          GroupedAssetBucket ◀┘

All types are frozen dataclasses: pivots are built once by the assembler
and never mutated afterwards, so the ordering and grouping stages can share
them freely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from reviewpivot.pivot.phases import PHASES, Phase

UNASSIGNED = "Unassigned"


@dataclass(frozen=True, slots=True)
class AssetKey:
    """Identity of one pivot row."""

    project: str
    root: str
    groups: tuple[str, ...]
    relation: str = ""

    @property
    def name(self) -> str:
        """Primary asset name (first group segment)."""
        return self.groups[0] if self.groups else ""


@dataclass(frozen=True, slots=True)
class ReviewRecord:
    """One submission event for one asset phase.

    ``phase`` is kept as the raw stored code; records whose code is not a
    known :class:`Phase` are ignored by the assembler.
    """

    id: int
    project: str
    root: str
    groups: tuple[str, ...]
    relation: str
    phase: str
    modified_at_utc: datetime
    work_status: str | None = None
    approval_status: str | None = None
    take: str | None = None
    submitted_at_utc: datetime | None = None
    deleted: int = 0

    @property
    def key(self) -> AssetKey:
        return AssetKey(self.project, self.root, self.groups, self.relation)

    @property
    def group_1(self) -> str:
        return self.groups[0] if self.groups else ""


@dataclass(frozen=True, slots=True)
class PhaseSlot:
    """Review state of one phase of one asset.

    ``record_id`` is ``None`` when the phase has no record at all, which is
    different from a record whose statuses happen to be empty.
    """

    work_status: str | None = None
    approval_status: str | None = None
    submitted_at_utc: datetime | None = None
    take: str | None = None
    record_id: int | None = None

    @property
    def is_present(self) -> bool:
        return self.record_id is not None

    @classmethod
    def from_record(cls, record: ReviewRecord) -> PhaseSlot:
        return cls(
            work_status=record.work_status,
            approval_status=record.approval_status,
            submitted_at_utc=record.submitted_at_utc,
            take=record.take,
            record_id=record.id,
        )


EMPTY_SLOT = PhaseSlot()


@dataclass(frozen=True, slots=True)
class AssetPivot:
    """One asset row with a fixed slot per phase.

    ``slots`` is ordered like :data:`~reviewpivot.pivot.phases.PHASES`.
    """

    key: AssetKey
    slots: tuple[PhaseSlot, ...] = field(default=(EMPTY_SLOT,) * len(PHASES))
    leaf_group_name: str = ""
    group_category_path: str | None = None
    top_group_node: str | None = None

    @property
    def name(self) -> str:
        return self.key.name

    @property
    def relation(self) -> str:
        return self.key.relation

    def slot(self, phase: Phase) -> PhaseSlot:
        return self.slots[PHASES.index(phase)]

    def has_phase(self, phase: Phase) -> bool:
        """True when the asset has an active record for *phase*."""
        return self.slot(phase).is_present

    def to_dict(self) -> dict[str, Any]:
        """Flat row: identity, grouping metadata, then ``<phase>_*`` columns."""
        row: dict[str, Any] = {
            "project": self.key.project,
            "root": self.key.root,
            "name": self.name,
            "groups": list(self.key.groups),
            "relation": self.relation,
            "leaf_group_name": self.leaf_group_name,
            "group_category_path": self.group_category_path,
            "top_group_node": self.top_group_node,
        }
        for phase, slot in zip(PHASES, self.slots, strict=True):
            row[f"{phase.value}_work_status"] = slot.work_status
            row[f"{phase.value}_approval_status"] = slot.approval_status
            row[f"{phase.value}_submitted_at_utc"] = slot.submitted_at_utc
            row[f"{phase.value}_take"] = slot.take
        return row


@dataclass(frozen=True, slots=True)
class GroupedAssetBucket:
    """Assets sharing one top-level group node.

    ``total_count`` is the bucket's size in the full (unpaginated) result,
    so it stays the same on every page that shows part of the bucket.
    """

    top_group_node: str
    items: tuple[AssetPivot, ...] = ()
    total_count: int | None = None

    @property
    def item_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "top_group_node": self.top_group_node,
            "items": [item.to_dict() for item in self.items],
            "item_count": self.item_count,
            "total_count": self.total_count,
        }
