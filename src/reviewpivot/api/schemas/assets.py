"""
Asset review schemas.

An :class:`AssetPivotSchema` is one flattened pivot row: asset identity,
grouping metadata, then four nullable columns per phase
(``<phase>_work_status``, ``<phase>_approval_status``,
``<phase>_submitted_at_utc``, ``<phase>_take``) for
``mdl``, ``rig``, ``bld``, ``dsn`` and ``ldv``.

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from reviewpivot.api.schemas.common import PagedResponse


class AssetPivotSchema(BaseModel):
    """One asset row with its latest review state per phase."""

    project: str
    root: str
    name: str = Field(description="Primary asset name (first group segment)")
    groups: list[str] = Field(description="Full group path")
    relation: str = ""
    leaf_group_name: str = ""
    group_category_path: str | None = None
    top_group_node: str | None = Field(default=None, description="First segment of the category path")

    mdl_work_status: str | None = None
    mdl_approval_status: str | None = None
    mdl_submitted_at_utc: datetime | None = None
    mdl_take: str | None = None

    rig_work_status: str | None = None
    rig_approval_status: str | None = None
    rig_submitted_at_utc: datetime | None = None
    rig_take: str | None = None

    bld_work_status: str | None = None
    bld_approval_status: str | None = None
    bld_submitted_at_utc: datetime | None = None
    bld_take: str | None = None

    dsn_work_status: str | None = None
    dsn_approval_status: str | None = None
    dsn_submitted_at_utc: datetime | None = None
    dsn_take: str | None = None

    ldv_work_status: str | None = None
    ldv_approval_status: str | None = None
    ldv_submitted_at_utc: datetime | None = None
    ldv_take: str | None = None


class GroupedAssetBucketSchema(BaseModel):
    """Page rows sharing one top group node."""

    top_group_node: str = Field(description="Bucket label; 'Unassigned' for assets without a category")
    items: list[AssetPivotSchema]
    item_count: int = Field(description="Rows of this bucket on the current page")
    total_count: int | None = Field(
        default=None,
        description="Rows of this bucket across all pages",
    )


class PivotQueryEcho(BaseModel):
    """Effective query after compatibility fallbacks."""

    project: str
    root: str
    view: str
    sort: str
    dir: str
    phase: str
    name: str | None = None
    name_match: str = "prefix"
    approval_status: list[str] = Field(default_factory=list)
    work_status: list[str] = Field(default_factory=list)


class PivotPageResponse(PagedResponse[AssetPivotSchema]):
    """Paged pivot rows.

    In the grouped view ``groups`` buckets the same rows that ``data``
    lists flat.
    """

    groups: list[GroupedAssetBucketSchema] | None = None
    query: PivotQueryEcho
    truncated: bool = Field(default=False, description="True when the asset cap cut the result")


class AssetSummarySchema(BaseModel):
    name: str
    relation: str = ""
    phase_count: int = 0
    last_modified_at_utc: datetime | None = None


class ReviewRecordSchema(BaseModel):
    """One review record as stored."""

    id: int
    project: str
    root: str
    groups: list[str]
    relation: str = ""
    phase: str
    take: str | None = None
    work_status: str | None = None
    approval_status: str | None = None
    submitted_at_utc: datetime | None = None
    modified_at_utc: datetime


class PhaseSchema(BaseModel):
    code: str
    ordinal: int
    display_name: str


class PhaseCatalogSchema(BaseModel):
    """Phase table and advisory status vocabularies."""

    phases: list[PhaseSchema]
    approval_statuses: list[str]
    work_statuses: list[str]
