"""
Typed request objects for operations.

Each dataclass represents the *input* contract for a single operation
function.  Requests carry raw-but-typed transport values; validation into
engine types happens inside the operation so every transport reports the
same errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from reviewpivot.pivot.query import DEFAULT_MAX_ROWS, DEFAULT_PER_PAGE, DEFAULT_ROOT, MAX_PER_PAGE

# ------------------------------------------------------------------ #
# Database operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class DatabaseInitRequest:
    """Request for :func:`reviewpivot.ops.database.initialize_database`."""

    schema_dir: str | None = None


@dataclass(frozen=True, slots=True)
class LoadRecordsRequest:
    """Request for :func:`reviewpivot.ops.database.load_review_records`.

    Attributes:
        review_infos: Raw review rows (``groups`` list or ``group_1``..``group_3``).
        group_categories: Category rows (``id``, ``project``, ``root``, ``path``).
        group_category_groups: Memberships (``project``, ``path``, ``group_category_id``).
    """

    review_infos: list[dict[str, Any]] = field(default_factory=list)
    group_categories: list[dict[str, Any]] = field(default_factory=list)
    group_category_groups: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> LoadRecordsRequest:
        return cls(
            review_infos=list(payload.get("review_infos", [])),
            group_categories=list(payload.get("group_categories", [])),
            group_category_groups=list(payload.get("group_category_groups", [])),
        )


# ------------------------------------------------------------------ #
# Asset review operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ListAssetPivotsRequest:
    """Request for :func:`reviewpivot.ops.assets.list_asset_pivots`.

    Attributes:
        project: Project identifier (required).
        root: Asset root, ``"assets"`` unless given.
        page: 1-based page number.
        per_page: Page size, at most *max_per_page*.
        sort: Raw sort key (``name``, ``relation``, ``<phase>_<field>``).
        direction: ``asc`` or ``desc``.
        phase: Preferred phase code, or ``none``.
        name: Asset name filter.
        name_match: ``prefix`` (default), ``contains`` or ``exact``.
        approval_statuses: Allowed approval statuses (comma lists allowed).
        work_statuses: Allowed work statuses (comma lists allowed).
        view: ``list`` or ``grouped``.
    """

    project: str = ""
    root: str | None = None
    page: int = 1
    per_page: int = DEFAULT_PER_PAGE
    sort: str | None = None
    direction: str | None = None
    phase: str | None = None
    name: str | None = None
    name_match: str | None = None
    approval_statuses: tuple[str, ...] = ()
    work_statuses: tuple[str, ...] = ()
    view: str | None = None
    max_per_page: int = MAX_PER_PAGE
    max_rows: int = DEFAULT_MAX_ROWS


@dataclass(frozen=True, slots=True)
class ListAssetsRequest:
    """Request for :func:`reviewpivot.ops.assets.list_assets`."""

    project: str = ""
    root: str = DEFAULT_ROOT
    limit: int = 50
    offset: int = 0


@dataclass(frozen=True, slots=True)
class GetAssetHistoryRequest:
    """Request for :func:`reviewpivot.ops.assets.get_asset_history`."""

    project: str = ""
    name: str = ""
    relation: str = ""
    root: str = DEFAULT_ROOT
    phase: str | None = None
    latest_only: bool = False
