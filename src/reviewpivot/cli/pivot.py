"""
CLI: ``review-pivot pivot``: asset review pivot commands.
"""

from __future__ import annotations

import typer
from rich.table import Table

from reviewpivot.cli.utils import (
    console,
    fail,
    make_context,
    output_paged,
    output_result,
    print_json,
    print_page_footer,
    print_warnings,
)
from reviewpivot.ops.result import PivotPagedResult
from reviewpivot.pivot.models import AssetPivot
from reviewpivot.pivot.phases import PHASES

app = typer.Typer(no_args_is_help=True)


def _slot_cell(pivot: AssetPivot, index: int) -> str:
    slot = pivot.slots[index]
    if not slot.is_present:
        return "[dim]-[/dim]"
    parts = [slot.approval_status or "-", slot.work_status or "-"]
    if slot.take:
        parts.append(f"t{slot.take}")
    return " / ".join(parts)


def _pivot_table(items: list[AssetPivot] | tuple[AssetPivot, ...], *, title: str) -> Table:
    table = Table(title=title, show_lines=False, pad_edge=False)
    table.add_column("name", overflow="fold")
    table.add_column("relation", overflow="fold")
    for phase in PHASES:
        table.add_column(phase.value, overflow="fold")
    for pivot in items:
        table.add_row(
            pivot.name,
            pivot.relation,
            *(_slot_cell(pivot, i) for i in range(len(PHASES))),
        )
    return table


def _render_pivots(result: PivotPagedResult) -> None:
    print_warnings(result)
    if result.truncated:
        console.print("[yellow]Result truncated at the asset cap.[/yellow]")

    if not result.data:
        console.print("[dim]No items.[/dim]")
        return

    if result.groups is not None:
        for bucket in result.groups:
            console.print(
                _pivot_table(
                    bucket.items,
                    title=f"{bucket.top_group_node} ({bucket.item_count} of {bucket.total_count})",
                )
            )
    else:
        console.print(_pivot_table(result.data, title=f"Asset reviews: {result.query.get('project')}"))

    print_page_footer(len(result.data), result)
    console.print(
        f"[dim]sort={result.query.get('sort')} dir={result.query.get('dir')}"
        f" phase={result.query.get('phase')} page={result.page}[/dim]"
    )


@app.command("list")
def list_pivots(
    project: str = typer.Option(..., "--project", "-P", help="Project identifier"),
    root: str | None = typer.Option(None, "--root", help="Asset root (default 'assets')"),
    page: int = typer.Option(1, "--page", "-p", help="Page number (1-indexed)"),
    per_page: int = typer.Option(15, "--per-page", "-n", help="Rows per page (max 200)"),
    sort: str | None = typer.Option(None, "--sort", "-s", help="name | relation | submitted | <phase>_<work|appr|submitted|take>"),
    direction: str | None = typer.Option(None, "--dir", help="asc | desc"),
    phase: str | None = typer.Option(None, "--phase", help="Preferred phase (mdl, rig, bld, dsn, ldv, none)"),
    name: str | None = typer.Option(None, "--name", help="Asset name filter"),
    name_match: str | None = typer.Option(None, "--name-match", help="prefix | contains | exact"),
    approval: list[str] | None = typer.Option(None, "--approval", "-a", help="Allowed approval status (repeatable)"),
    work: list[str] | None = typer.Option(None, "--work", "-w", help="Allowed work status (repeatable)"),
    view: str | None = typer.Option(None, "--view", help="list | grouped"),
    timeout: float | None = typer.Option(None, "--timeout", help="Give up after N seconds"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show one page of the asset review pivot."""
    from reviewpivot.ops.assets import list_asset_pivots as _list
    from reviewpivot.ops.requests import ListAssetPivotsRequest

    ctx, _ = make_context(database, timeout=timeout)
    request = ListAssetPivotsRequest(
        project=project,
        root=root,
        page=page,
        per_page=per_page,
        sort=sort,
        direction=direction,
        phase=phase,
        name=name,
        name_match=name_match,
        approval_statuses=tuple(approval or ()),
        work_statuses=tuple(work or ()),
        view=view,
    )
    result = _list(ctx, request)
    if not result.success:
        fail(result)
    if json_out:
        print_json(result.to_dict())
        return
    _render_pivots(result)


@app.command("assets")
def list_assets(
    project: str = typer.Option(..., "--project", "-P", help="Project identifier"),
    root: str = typer.Option("assets", "--root"),
    limit: int = typer.Option(50, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List assets that have review records."""
    from reviewpivot.ops.assets import list_assets as _list
    from reviewpivot.ops.requests import ListAssetsRequest

    ctx, _ = make_context(database)
    result = _list(ctx, ListAssetsRequest(project=project, root=root, limit=limit, offset=offset))
    output_paged(result, as_json=json_out, title=f"Assets: {project}")


@app.command("history")
def history(
    name: str = typer.Argument(..., help="Asset name"),
    relation: str = typer.Argument("", help="Relation (omit for the asset itself)"),
    project: str = typer.Option(..., "--project", "-P"),
    root: str = typer.Option("assets", "--root"),
    phase: str | None = typer.Option(None, "--phase", help="Restrict to one phase"),
    latest: bool = typer.Option(False, "--latest", help="Only the latest record per phase"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the review records of one asset, newest first."""
    from reviewpivot.ops.assets import get_asset_history as _get
    from reviewpivot.ops.requests import GetAssetHistoryRequest

    ctx, _ = make_context(database)
    result = _get(
        ctx,
        GetAssetHistoryRequest(
            project=project,
            name=name,
            relation=relation,
            root=root,
            phase=phase,
            latest_only=latest,
        ),
    )
    output_result(result, as_json=json_out, title=f"Reviews: {name}")
