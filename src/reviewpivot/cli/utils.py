"""
CLI utility helpers: output formatting and connection management.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from reviewpivot.core.connection import create_connection
from reviewpivot.core.deadline import Deadline
from reviewpivot.core.settings import PivotBaseSettings
from reviewpivot.ops.context import OperationContext
from reviewpivot.ops.result import OperationResult, PagedResult

console = Console()
err_console = Console(stderr=True)

DEFAULT_DATABASE = "review_pivot.db"


# ── Connection helper ────────────────────────────────────────────────────


def get_connection(database: str | None = None) -> tuple[Any, Any]:
    """Open a database connection.

    Defaults to ``review_pivot.db`` inside the configured data directory
    (``~/.review-pivot`` unless ``REVIEWPIVOT_DATA_DIR`` is set).
    """
    settings = PivotBaseSettings()
    return create_connection(database or DEFAULT_DATABASE, data_dir=settings.data_dir)


def make_context(
    database: str | None = None,
    *,
    dry_run: bool = False,
    timeout: float | None = None,
) -> tuple[OperationContext, Any]:
    """Create an ``OperationContext`` + connection pair for CLI commands."""
    conn, info = get_connection(database)
    deadline = Deadline.after(timeout, operation="cli") if timeout else None
    ctx = OperationContext(
        conn=conn,
        dialect=info.dialect,
        deadline=deadline,
        caller="cli",
        dry_run=dry_run,
    )
    return ctx, conn


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def fail(result: OperationResult) -> None:
    """Print ``Error (CODE): message`` to stderr and exit 1."""
    err = result.error
    msg = err.message if err else "Unknown error"
    code = err.code if err else "ERROR"
    err_console.print(f"[bold red]Error[/bold red] ({code}): {msg}")
    raise typer.Exit(code=1)


def print_warnings(result: OperationResult) -> None:
    for warning in result.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {warning}")


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def output_result(
    result: OperationResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render an ``OperationResult`` to the terminal."""
    if not result.success:
        fail(result)

    data = result.data

    if as_json:
        payload = _to_dict(data) if not isinstance(data, list | tuple) else [_to_dict(d) for d in data]
        print_json(payload)
        return

    print_warnings(result)
    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        print_table(data, title=title)
    else:
        _print_dict(_to_dict(data), title=title)


def output_paged(
    result: PagedResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render a ``PagedResult`` to the terminal with pagination info."""
    if not result.success:
        fail(result)

    items = result.data or []

    if as_json:
        print_json(
            {
                "items": [_to_dict(d) for d in items],
                "total": result.total,
                "limit": result.limit,
                "offset": result.offset,
                "has_more": result.has_more,
            }
        )
        return

    print_warnings(result)
    if not items:
        console.print("[dim]No items.[/dim]")
        return

    print_table(items, title=title)
    print_page_footer(len(items), result)


def print_page_footer(shown: int, result: PagedResult) -> None:
    console.print(f"\n[dim]Showing {shown} of {result.total} (offset {result.offset})[/dim]")


# ── Private helpers ──────────────────────────────────────────────────────


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*(_cell(v) for v in d.values()))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
