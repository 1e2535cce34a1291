"""Shared base settings for review-pivot entry points.

``PivotBaseSettings`` carries the knobs every transport needs (bind
address, log level, data directory).  The API layer subclasses it and adds
its own fields under the ``REVIEWPIVOT_`` environment prefix.

Examples:
    >>> from reviewpivot.core.settings import PivotBaseSettings
    >>> class WorkerSettings(PivotBaseSettings):
    ...     model_config = {"env_prefix": "REVIEWPIVOT_WORKER_"}
    ...     batch_size: int = 500

Tags:
    settings, configuration, pydantic, environment, review-pivot
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PivotBaseSettings(BaseSettings):
    """Common settings shared across review-pivot services.

    Fields
    ──────
    host         : Bind address for the HTTP transport
    port         : Bind port for the HTTP transport
    debug        : Enable debug mode (error details in responses)
    log_level    : Structlog log level
    json_logs    : Render logs as JSON (None = auto-detect from tty)
    data_dir     : Directory relative SQLite paths resolve against
    """

    model_config = SettingsConfigDict(
        env_prefix="REVIEWPIVOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Network ──────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8080

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".review-pivot",
        description="Directory relative SQLite paths resolve against",
    )
