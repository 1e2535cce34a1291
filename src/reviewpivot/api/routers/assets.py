"""
Asset review router: pivot table, asset list, per-asset records, phases.

Endpoints:
    GET /projects/{project}/reviews/assets/pivot              Paged pivot rows
    GET /projects/{project}/reviews/assets                    Distinct assets
    GET /projects/{project}/reviews/assets/{name}             Latest record per phase
    GET /projects/{project}/reviews/assets/{name}/{relation}  Same, for a relation
    GET /reviews/phases                                       Phase table + vocabularies

The pivot route is registered before the per-asset routes, so an asset
literally named ``pivot`` is only reachable with an explicit relation.

Tags:
    review-pivot, api, assets, pivot, paging

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from fastapi import APIRouter, Path, Query, Request, Response

from reviewpivot.api.deps import OpContext, Settings
from reviewpivot.api.schemas.assets import (
    AssetPivotSchema,
    AssetSummarySchema,
    GroupedAssetBucketSchema,
    PhaseCatalogSchema,
    PhaseSchema,
    PivotPageResponse,
    PivotQueryEcho,
    ReviewRecordSchema,
)
from reviewpivot.api.schemas.common import PagedResponse, PageMeta, SuccessResponse
from reviewpivot.api.utils import _dc, _handle_error, link_header, page_links
from reviewpivot.pivot.models import AssetPivot, ReviewRecord

router = APIRouter()


def _pivot_schema(pivot: AssetPivot) -> AssetPivotSchema:
    return AssetPivotSchema(**pivot.to_dict())


def _record_schema(record: ReviewRecord) -> ReviewRecordSchema:
    data = _dc(record)
    data["groups"] = list(record.groups)
    return ReviewRecordSchema(**data)


def _merge(*values: list[str] | None) -> tuple[str, ...]:
    merged: list[str] = []
    for value in values:
        merged.extend(value or [])
    return tuple(merged)


@router.get(
    "/projects/{project}/reviews/assets/pivot",
    response_model=PivotPageResponse,
)
def list_asset_pivots(
    request: Request,
    response: Response,
    ctx: OpContext,
    settings: Settings,
    project: str = Path(..., description="Project identifier"),
    root: str | None = Query(None, description="Asset root (default 'assets')"),
    page: int = Query(1, description="Page number (1-indexed)"),
    per_page: int | None = Query(None, description="Rows per page (default 15, max 200)"),
    sort: str | None = Query(None, description="'name', 'relation', 'submitted' (latest in any phase) or '<phase>_<work|appr|submitted|take>'"),
    direction: str | None = Query(None, alias="dir", description="'asc' or 'desc'"),
    phase: str | None = Query(None, description="Preferred phase code or 'none'"),
    name: str | None = Query(None, description="Asset name filter"),
    name_match: str | None = Query(None, description="'prefix' (default), 'contains' or 'exact'"),
    approval_status: list[str] | None = Query(None, description="Allowed approval statuses (comma-separated or repeated)"),
    appr: list[str] | None = Query(None, include_in_schema=False),
    work_status: list[str] | None = Query(None, description="Allowed work statuses (comma-separated or repeated)"),
    work: list[str] | None = Query(None, include_in_schema=False),
    view: str | None = Query(None, description="'list' (default) or 'grouped'"),
):
    """One page of asset pivots with the latest review state per phase.

    With a preferred phase, that phase passes on an allowed approval or
    work status.  Without one, each status list must match some phase.
    Unknown ``sort`` or ``phase`` values fall
    back to name order / no phase and add a warning.

    Raises:
        400 VALIDATION_FAILED: Bad page, per_page, dir, view or name_match.
        503 STORE_ERROR: The record store failed.
        504 DEADLINE_EXCEEDED: The query ran past the request deadline.

    Example:
        GET /api/v1/projects/demo/reviews/assets/pivot?sort=mdl_take&dir=asc&phase=rig

        Response:
        {
            "data": [{"name": "charA", "mdl_take": "007", ...}],
            "page": {"total": 42, "limit": 15, "offset": 0, "has_more": true, ...},
            "query": {"sort": "mdl_take", "dir": "asc", "phase": "rig", ...},
            "truncated": false
        }
    """
    from reviewpivot.ops.assets import list_asset_pivots as _list
    from reviewpivot.ops.requests import ListAssetPivotsRequest

    per_page = per_page if per_page is not None else settings.default_per_page
    result = _list(
        ctx,
        ListAssetPivotsRequest(
            project=project,
            root=root,
            page=page,
            per_page=per_page,
            sort=sort,
            direction=direction,
            phase=phase,
            name=name,
            name_match=name_match,
            approval_statuses=_merge(approval_status, appr),
            work_statuses=_merge(work_status, work),
            view=view,
            max_per_page=settings.max_per_page,
            max_rows=settings.max_rows,
        ),
    )
    if not result.success:
        return _handle_error(result, request)

    links = page_links(request, page=page, per_page=per_page, total=result.total)
    if links:
        response.headers["Link"] = link_header(links)

    groups = None
    if result.groups is not None:
        groups = [
            GroupedAssetBucketSchema(
                top_group_node=bucket.top_group_node,
                items=[_pivot_schema(p) for p in bucket.items],
                item_count=bucket.item_count,
                total_count=bucket.total_count,
            )
            for bucket in result.groups
        ]

    return PivotPageResponse(
        data=[_pivot_schema(p) for p in (result.data or [])],
        page=PageMeta.from_result(result.total, result.limit, result.offset, page=page),
        groups=groups,
        query=PivotQueryEcho(**result.query),
        truncated=result.truncated,
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
        links=links,
    )


@router.get(
    "/projects/{project}/reviews/assets",
    response_model=PagedResponse[AssetSummarySchema],
)
def list_assets(
    request: Request,
    ctx: OpContext,
    project: str = Path(..., description="Project identifier"),
    root: str = Query("assets", description="Asset root"),
    limit: int = Query(50, ge=1, le=500, description="Maximum items to return (1-500)"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
):
    """Distinct assets that have active review records, by name."""
    from reviewpivot.ops.assets import list_assets as _list
    from reviewpivot.ops.requests import ListAssetsRequest

    result = _list(ctx, ListAssetsRequest(project=project, root=root, limit=limit, offset=offset))
    if not result.success:
        return _handle_error(result, request)
    return PagedResponse(
        data=[AssetSummarySchema(**_dc(a)) for a in (result.data or [])],
        page=PageMeta.from_result(result.total, result.limit, result.offset),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


def _asset_records(
    request: Request,
    ctx: OpContext,
    *,
    project: str,
    name: str,
    relation: str,
    root: str,
    phase: str | None,
    history: bool,
):
    from reviewpivot.ops.assets import get_asset_history as _get
    from reviewpivot.ops.requests import GetAssetHistoryRequest

    result = _get(
        ctx,
        GetAssetHistoryRequest(
            project=project,
            name=name,
            relation=relation,
            root=root,
            phase=phase,
            latest_only=not history,
        ),
    )
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(
        data=[_record_schema(r) for r in (result.data or [])],
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.get(
    "/projects/{project}/reviews/assets/{name}",
    response_model=SuccessResponse[list[ReviewRecordSchema]],
)
def get_asset_review_infos(
    request: Request,
    ctx: OpContext,
    project: str = Path(..., description="Project identifier"),
    name: str = Path(..., description="Asset name (group_1)"),
    root: str = Query("assets", description="Asset root"),
    phase: str | None = Query(None, description="Restrict to one phase"),
    history: bool = Query(False, description="Return every record instead of the latest per phase"),
):
    """Latest review record per phase for one asset (or its full history).

    Raises:
        404 NOT_FOUND: The asset has no active records.
    """
    return _asset_records(
        request, ctx, project=project, name=name, relation="", root=root, phase=phase, history=history
    )


@router.get(
    "/projects/{project}/reviews/assets/{name}/{relation}",
    response_model=SuccessResponse[list[ReviewRecordSchema]],
)
def get_relation_review_infos(
    request: Request,
    ctx: OpContext,
    project: str = Path(..., description="Project identifier"),
    name: str = Path(..., description="Asset name (group_1)"),
    relation: str = Path(..., description="Relation of the asset"),
    root: str = Query("assets", description="Asset root"),
    phase: str | None = Query(None, description="Restrict to one phase"),
    history: bool = Query(False, description="Return every record instead of the latest per phase"),
):
    """Same as :func:`get_asset_review_infos` for one relation of the asset."""
    return _asset_records(
        request,
        ctx,
        project=project,
        name=name,
        relation=relation,
        root=root,
        phase=phase,
        history=history,
    )


@router.get("/reviews/phases", response_model=SuccessResponse[PhaseCatalogSchema])
def list_phases():
    """Phase table in pipeline order plus the known status values."""
    from reviewpivot.pivot.phases import APPROVAL_STATUSES, PHASES, WORK_STATUSES

    return SuccessResponse(
        data=PhaseCatalogSchema(
            phases=[
                PhaseSchema(code=p.value, ordinal=p.ordinal, display_name=p.display_name)
                for p in PHASES
            ],
            approval_statuses=list(APPROVAL_STATUSES),
            work_statuses=list(WORK_STATUSES),
        )
    )
