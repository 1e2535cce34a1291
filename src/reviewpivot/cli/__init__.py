"""
CLI layer for review-pivot.

Provides a Typer application with sub-commands that delegate to the
operations layer (``reviewpivot.ops``).  This package handles only terminal
transport: argument parsing, coloured output, and table formatting.

Entry point::

    review-pivot --help
"""

from reviewpivot.cli.app import app

__all__ = ["app"]
