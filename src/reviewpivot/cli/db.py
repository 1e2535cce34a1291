"""
CLI: ``review-pivot db``: local database commands.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from reviewpivot.cli.utils import err_console, make_context, output_result

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create the review tables (idempotent)."""
    from reviewpivot.ops.database import initialize_database
    from reviewpivot.ops.requests import DatabaseInitRequest

    ctx, _conn = make_context(database, dry_run=dry_run)
    result = initialize_database(ctx, DatabaseInitRequest())
    output_result(result, as_json=json_out, title="Database Init")


@app.command()
def load(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON fixture file"),
    database: str | None = typer.Option(None, "--database", "-d"),
    dry_run: bool = typer.Option(False, "--dry-run"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Load review records and group categories from a JSON file.

    The file holds ``review_infos``, ``group_categories`` and
    ``group_category_groups`` lists.
    """
    from reviewpivot.ops.database import load_review_records
    from reviewpivot.ops.requests import LoadRecordsRequest

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        err_console.print(f"[bold red]Error[/bold red] (INVALID_INPUT): {path}: {exc}")
        raise typer.Exit(code=1) from exc
    if not isinstance(payload, dict):
        err_console.print(f"[bold red]Error[/bold red] (INVALID_INPUT): {path}: expected a JSON object")
        raise typer.Exit(code=1)

    ctx, _conn = make_context(database, dry_run=dry_run)
    result = load_review_records(ctx, LoadRecordsRequest.from_payload(payload))
    output_result(result, as_json=json_out, title="Load Result")


@app.command()
def health(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Check database connectivity."""
    from reviewpivot.ops.database import check_database_health

    ctx, _conn = make_context(database)
    result = check_database_health(ctx)
    output_result(result, as_json=json_out, title="Database Health")
