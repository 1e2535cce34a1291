"""
Typed response objects for operations.

Each dataclass represents the *output* of a single operation beyond the
generic :class:`OperationResult` envelope.  Responses carry only domain
data: no HTTP status codes, no CLI formatting.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

# ------------------------------------------------------------------ #
# Database responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class DatabaseInitResult:
    """Result payload for :func:`reviewpivot.ops.database.initialize_database`."""

    tables_created: list[str]
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Result payload for :func:`reviewpivot.ops.database.load_review_records`."""

    review_infos: int = 0
    group_categories: int = 0
    group_category_groups: int = 0
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class DatabaseHealth:
    """Database health for :func:`reviewpivot.ops.database.check_database_health`."""

    connected: bool
    backend: str = "unknown"  # "sqlite", "postgresql"
    table_count: int = 0
    latency_ms: float = 0.0


# ------------------------------------------------------------------ #
# Asset responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AssetSummary:
    """One ``(name, relation)`` pair with active review records."""

    name: str
    relation: str = ""
    phase_count: int = 0
    last_modified_at_utc: datetime | None = None
