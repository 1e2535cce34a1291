"""``python -m reviewpivot`` runs the CLI."""

from reviewpivot.cli.app import app

app()
