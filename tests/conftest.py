"""
Shared pytest fixtures for review-pivot tests.

This module provides:
- An in-memory SQLite connection with the bundled schema applied
- A seeded review log (``demo`` project) with group categories
- Factories for building ``ReviewRecord`` / ``AssetPivot`` values by hand

Seeded assets (project ``demo``, root ``assets``)::

    name   relation  category          phases (latest)
    charA  ""        characters/main   mdl take 003 dirApproved, rig take 10 clientReview
    charA  "lod"     characters/main   mdl check
    charB  ""        characters/main   mdl take 007 check/svRetake, ldv take "-" dirApproved
    envY   ""        (none)            dsn, all statuses empty
    propX  ""        props             bld take abc clientApproved (rig row is deleted)
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

# Ensure reviewpivot is importable without an install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reviewpivot.core.schema_loader import apply_all_schemas
from reviewpivot.ops.context import OperationContext
from reviewpivot.ops.sqlite_conn import SqliteConnection
from reviewpivot.pivot.models import EMPTY_SLOT, AssetKey, AssetPivot, PhaseSlot, ReviewRecord
from reviewpivot.pivot.phases import PHASES
from reviewpivot.pivot.store import ReviewInfoRepository

PROJECT = "demo"


def _row(id: int, name: str, phase: str, modified: str, **extra: Any) -> dict[str, Any]:
    row = {
        "id": id,
        "project": PROJECT,
        "root": "assets",
        "groups": [name],
        "relation": "",
        "phase": phase,
        "modified_at_utc": modified,
    }
    row.update(extra)
    return row


REVIEW_ROWS: list[dict[str, Any]] = [
    _row(1, "charA", "mdl", "2024-01-01T10:00:00Z", take="001", approval_status="dirRetake", work_status="svRetake"),
    _row(
        2,
        "charA",
        "mdl",
        "2024-01-05T10:00:00Z",
        take="003",
        approval_status="dirApproved",
        work_status="svApproved",
        submitted_at_utc="2024-01-04T09:00:00Z",
    ),
    _row(
        3,
        "charA",
        "rig",
        "2024-01-06T10:00:00Z",
        take="10",
        approval_status="clientReview",
        work_status="check",
        submitted_at_utc="2024-01-06T08:00:00Z",
    ),
    _row(4, "charB", "mdl", "2024-01-02T10:00:00Z", take="007", approval_status="check", work_status="svRetake"),
    _row(5, "charB", "ldv", "2024-01-03T10:00:00Z", take="-", approval_status="dirApproved"),
    _row(6, "propX", "bld", "2024-01-04T10:00:00Z", take="abc", approval_status="clientApproved", work_status="leadApproved"),
    _row(7, "propX", "rig", "2024-01-08T10:00:00Z", approval_status="dirApproved", deleted=1),
    _row(8, "charA", "MDL", "2024-01-07T10:00:00Z", relation="lod", approval_status="check"),
    _row(9, "envY", "dsn", "2024-01-02T10:00:00Z"),
]

GROUP_CATEGORIES: list[dict[str, Any]] = [
    {"id": 1, "project": PROJECT, "root": "assets", "path": "characters/main"},
    {"id": 2, "project": PROJECT, "root": "assets", "path": "props"},
]

GROUP_CATEGORY_GROUPS: list[dict[str, Any]] = [
    {"project": PROJECT, "path": "charA", "group_category_id": 1},
    {"project": PROJECT, "path": "charB", "group_category_id": 1},
    {"project": PROJECT, "path": "propX", "group_category_id": 2},
]


def seed_review_log(conn: Any) -> None:
    """Insert the seeded review log into *conn* and commit."""
    repo = ReviewInfoRepository(conn)
    repo.insert_review_rows(REVIEW_ROWS)
    repo.insert_group_categories(GROUP_CATEGORIES, GROUP_CATEGORY_GROUPS)
    repo.commit()


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def conn():
    """Empty in-memory SQLite connection with the schema applied."""
    connection = SqliteConnection(":memory:")
    apply_all_schemas(connection)
    yield connection
    connection.close()


@pytest.fixture
def seeded_conn(conn):
    seed_review_log(conn)
    return conn


@pytest.fixture
def repo(seeded_conn) -> ReviewInfoRepository:
    return ReviewInfoRepository(seeded_conn)


@pytest.fixture
def ctx(seeded_conn) -> OperationContext:
    return OperationContext(conn=seeded_conn)


@pytest.fixture
def empty_ctx(conn) -> OperationContext:
    return OperationContext(conn=conn)


@pytest.fixture
def seeded_db_path(tmp_path) -> Path:
    """SQLite file holding the seeded review log (for API/CLI tests)."""
    path = tmp_path / "reviews.db"
    connection = SqliteConnection(str(path))
    apply_all_schemas(connection)
    seed_review_log(connection)
    connection.close()
    return path


# =============================================================================
# Value factories
# =============================================================================


def ts(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=UTC)


@pytest.fixture
def make_record():
    """Factory for ``ReviewRecord`` values with sensible defaults."""

    def _make(
        id: int,
        name: str = "charA",
        phase: str = "mdl",
        modified: datetime | None = None,
        **kwargs: Any,
    ) -> ReviewRecord:
        return ReviewRecord(
            id=id,
            project=kwargs.pop("project", PROJECT),
            root=kwargs.pop("root", "assets"),
            groups=kwargs.pop("groups", (name,)),
            relation=kwargs.pop("relation", ""),
            phase=phase,
            modified_at_utc=modified or ts(1),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_pivot():
    """Factory for ``AssetPivot`` values.

    Phase slots are given as keyword arguments named after the phase code,
    each a dict of ``PhaseSlot`` fields; a slot given at all is present.
    """

    def _make(
        name: str,
        relation: str = "",
        *,
        category: str | None = None,
        **phases: dict[str, Any],
    ) -> AssetPivot:
        slots = []
        for index, phase in enumerate(PHASES):
            values = phases.get(phase.value)
            if values is None:
                slots.append(EMPTY_SLOT)
            else:
                slots.append(PhaseSlot(record_id=values.pop("record_id", index + 1), **values))
        top = category.split("/")[0] if category else None
        return AssetPivot(
            key=AssetKey(PROJECT, "assets", (name,), relation),
            slots=tuple(slots),
            leaf_group_name=name,
            group_category_path=category,
            top_group_node=top,
        )

    return _make
