"""
Root Typer application for the review-pivot CLI.

Sub-commands import the ops layer lazily inside each command, so
``--help`` stays fast.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

app = Typer(
    name="review-pivot",
    help="review-pivot: per-phase asset review tables for animation/VFX pipelines.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from reviewpivot import __version__

        typer.echo(f"review-pivot {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Diagnostics level (written to stderr)"),
) -> None:
    """review-pivot CLI: query asset reviews and manage the local database."""
    from reviewpivot.core.logging import configure_logging

    # stdout carries command output only
    configure_logging(log_level, json_format=False, stream=sys.stderr)


# ── Sub-command registration ─────────────────────────────────────────────

from reviewpivot.cli.db import app as db_app  # noqa: E402
from reviewpivot.cli.pivot import app as pivot_app  # noqa: E402
from reviewpivot.cli.serve import app as serve_app  # noqa: E402

app.add_typer(pivot_app, name="pivot", help="Asset review pivot queries.")
app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(serve_app, name="serve", help="Start the API server.")
