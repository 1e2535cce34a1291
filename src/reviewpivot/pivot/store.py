"""
Record store accessor.

Reads active review records from ``t_review_info`` and returns them as
:class:`~reviewpivot.pivot.models.ReviewRecord` objects with timezone-aware
timestamps.

Architecture::

    ┌───────────────────────────────────────────────────────────────────┐
    │ ReviewInfoRepository(conn, dialect, deadline)                     │
    ├───────────────────────────────────────────────────────────────────┤
    │ list_latest_records(RecordQuery)                                  │
    │   window dialect:  CTE ROW_NUMBER() OVER (PARTITION BY asset,     │
    │                    phase ORDER BY modified DESC, submitted DESC   │
    │                    NULLS LAST, id DESC) ... WHERE rn = 1          │
    │   otherwise:       all active rows, ranked by resolve_latest()    │
    │ list_group_paths(project, root)   group path → category path      │
    │ list_assets(project, root, limit, offset)                         │
    │ insert_review_rows / insert_group_categories   (dev loading)      │
    └───────────────────────────────────────────────────────────────────┘

Every user value is a bound parameter.  Name filters are matched with
``LOWER(group_1) LIKE ? ESCAPE '\\'`` after escaping ``%`` and ``_``.

Status predicates only reach SQL when a single phase is locked: the
``EXISTS`` clause keeps assets whose *latest* record of that phase has an
allowed status, and still returns all of their phases.  Any-phase status
filtering is left to the filter engine.

Driver errors (``sqlite3.Error``, ``sqlalchemy.exc.SQLAlchemyError``)
propagate unchanged.  Every read runs under the repository's
:class:`~reviewpivot.core.deadline.Deadline`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from reviewpivot.core.deadline import Deadline, guard_query
from reviewpivot.core.dialect import Dialect, escape_like
from reviewpivot.core.errors import QueryError, ValidationError
from reviewpivot.core.logging import get_logger
from reviewpivot.core.protocols import Connection
from reviewpivot.core.repository import BaseRepository
from reviewpivot.pivot.models import ReviewRecord
from reviewpivot.pivot.phases import PHASES
from reviewpivot.pivot.query import NameMatch, RecordQuery
from reviewpivot.pivot.resolver import resolve_latest

logger = get_logger(__name__)

_RECORD_COLUMNS = (
    "id",
    "project",
    "root",
    "group_1",
    "group_2",
    "group_3",
    "relation",
    "phase",
    "take",
    "work_status",
    "approval_status",
    "submitted_at_utc",
    "modified_at_utc",
    "deleted",
)

_PARTITION = "r.project, r.root, r.group_1, r.group_2, r.group_3, r.relation, LOWER(r.phase)"

_LATEST_ORDER = (
    "r.modified_at_utc DESC, "
    "CASE WHEN r.submitted_at_utc IS NULL THEN 1 ELSE 0 END, "
    "r.submitted_at_utc DESC, "
    "r.id DESC"
)


class ReviewRecordStore(Protocol):
    """What the pivot engine needs from a record store."""

    def list_latest_records(self, query: RecordQuery) -> list[ReviewRecord]: ...

    def list_group_paths(self, project: str, root: str) -> dict[str, str]: ...


def parse_timestamp(value: Any, column: str = "timestamp") -> datetime | None:
    """Store value → aware UTC datetime.

    Accepts ``datetime`` objects (PostgreSQL) and ISO-8601 text (SQLite,
    ``Z`` suffix allowed).  Naive values are taken as UTC.

    Raises:
        QueryError: For text that is not ISO-8601.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise QueryError(
                f"unparseable {column} value {value!r}", cause=exc
            ).with_context(column=column) from exc
    else:
        raise QueryError(f"unexpected {column} type {type(value).__name__}").with_context(
            column=column,
        )
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _format_timestamp(value: Any) -> str | None:
    """Normalise loader input to the ISO text stored in SQLite."""
    parsed = parse_timestamp(value)
    return parsed.isoformat() if parsed is not None else None


def row_to_record(row: Mapping[str, Any]) -> ReviewRecord:
    groups = [row["group_1"] or "", row.get("group_2") or "", row.get("group_3") or ""]
    while len(groups) > 1 and not groups[-1]:
        groups.pop()

    modified = parse_timestamp(row["modified_at_utc"], "modified_at_utc")
    if modified is None:
        raise QueryError(f"record {row['id']} has no modified_at_utc")

    return ReviewRecord(
        id=int(row["id"]),
        project=row["project"],
        root=row["root"],
        groups=tuple(groups),
        relation=row.get("relation") or "",
        phase=(row["phase"] or "").strip().lower(),
        modified_at_utc=modified,
        work_status=row.get("work_status"),
        approval_status=row.get("approval_status"),
        take=row.get("take"),
        submitted_at_utc=parse_timestamp(row.get("submitted_at_utc"), "submitted_at_utc"),
        deleted=int(row.get("deleted") or 0),
    )


class ReviewInfoRepository(BaseRepository):
    """Read access to the review log and group categories."""

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> None:
        super().__init__(conn, dialect)
        self.deadline = deadline or Deadline.unbounded()

    def _read(self, sql: str, params: Sequence[Any], operation: str) -> list[dict[str, Any]]:
        with guard_query(self.conn, self.deadline, operation):
            rows = self.query(sql, tuple(params))
        logger.debug("store_read", operation=operation, rows=len(rows))
        return rows

    # -- WHERE builders ----------------------------------------------------

    def _record_where(self, query: RecordQuery) -> tuple[list[str], list[Any]]:
        if not query.project or not query.project.strip():
            raise ValidationError("project is required", field="project")

        clauses = [
            "r.project = ?",
            "r.root = ?",
            "r.deleted = 0",
            f"LOWER(r.phase) IN ({self.ph(len(PHASES))})",
        ]
        params: list[Any] = [query.project, query.root, *(p.value for p in PHASES)]

        needle = (query.name or "").strip().lower()
        if needle:
            if query.name_match is NameMatch.EXACT:
                clauses.append("LOWER(r.group_1) = ?")
                params.append(needle)
            else:
                pattern = escape_like(needle) + "%"
                if query.name_match is NameMatch.CONTAINS:
                    pattern = "%" + pattern
                clauses.append(f"LOWER(r.group_1) LIKE ? {self.dialect.like_escape()}")
                params.append(pattern)

        if query.relation is not None:
            clauses.append("r.relation = ?")
            params.append(query.relation)

        return clauses, params

    def _locked_status_exists(self, query: RecordQuery) -> tuple[str, list[Any]]:
        """EXISTS clause narrowing to assets whose locked phase matches."""
        if query.locked_phase is None or query.statuses.is_empty:
            return "", []

        clauses = [
            "f.rn = 1",
            "LOWER(f.phase) = ?",
            "f.group_1 = l.group_1",
            "f.group_2 = l.group_2",
            "f.group_3 = l.group_3",
            "f.relation = l.relation",
        ]
        params: list[Any] = [query.locked_phase.value]
        # approval OR work on the locked slot, matching filters.slot_matches
        hits: list[str] = []
        if query.statuses.approval:
            approval = sorted(query.statuses.approval)
            hits.append(f"LOWER(TRIM(COALESCE(f.approval_status, ''))) IN ({self.ph(len(approval))})")
            params.extend(approval)
        if query.statuses.work:
            work = sorted(query.statuses.work)
            hits.append(f"LOWER(TRIM(COALESCE(f.work_status, ''))) IN ({self.ph(len(work))})")
            params.extend(work)
        clauses.append("(" + " OR ".join(hits) + ")")
        return f" AND EXISTS (SELECT 1 FROM ranked f WHERE {' AND '.join(clauses)})", params

    # -- Reads -------------------------------------------------------------

    def list_latest_records(self, query: RecordQuery) -> list[ReviewRecord]:
        """Latest active record per (asset, phase) for one project/root."""
        clauses, params = self._record_where(query)
        where = " AND ".join(clauses)

        if not self.dialect.supports_window_functions:
            cols = ", ".join(f"r.{c}" for c in _RECORD_COLUMNS)
            sql = (
                f"SELECT {cols} FROM t_review_info r WHERE {where} "
                "ORDER BY r.group_1, r.group_2, r.group_3, r.relation, r.id"
            )
            rows = self._read(sql, params, "list_latest_records")
            return resolve_latest(row_to_record(row) for row in rows)

        inner_cols = ", ".join(f"r.{c}" for c in _RECORD_COLUMNS)
        outer_cols = ", ".join(f"l.{c}" for c in _RECORD_COLUMNS)
        exists, exists_params = self._locked_status_exists(query)
        sql = (
            "WITH ranked AS ("
            f"SELECT {inner_cols}, ROW_NUMBER() OVER ("
            f"PARTITION BY {_PARTITION} ORDER BY {_LATEST_ORDER}) AS rn "
            f"FROM t_review_info r WHERE {where}) "
            f"SELECT {outer_cols} FROM ranked l WHERE l.rn = 1{exists} "
            "ORDER BY l.group_1, l.group_2, l.group_3, l.relation, l.phase"
        )
        rows = self._read(sql, [*params, *exists_params], "list_latest_records")
        return [row_to_record(row) for row in rows]

    def list_group_paths(self, project: str, root: str) -> dict[str, str]:
        """Map asset group path (``group_1``) → category path."""
        sql = (
            "SELECT gcg.path AS group_path, gc.path AS category_path "
            "FROM t_group_category_group gcg "
            "JOIN t_group_category gc ON gc.id = gcg.group_category_id "
            "WHERE gcg.project = ? AND gc.project = ? AND gc.root = ? "
            "AND gcg.deleted = 0 AND gc.deleted = 0 "
            "ORDER BY gcg.path, gcg.id"
        )
        rows = self._read(sql, [project, project, root], "list_group_paths")
        paths: dict[str, str] = {}
        for row in rows:
            paths.setdefault(row["group_path"], row["category_path"])
        return paths

    def list_assets(
        self, project: str, root: str, *, limit: int, offset: int
    ) -> tuple[list[dict[str, Any]], int]:
        """Distinct ``(name, relation)`` pairs with active records, paged."""
        base = (
            "FROM t_review_info r "
            "WHERE r.project = ? AND r.root = ? AND r.deleted = 0"
        )
        count = self._read(
            f"SELECT COUNT(*) AS total FROM (SELECT DISTINCT r.group_1, r.relation {base}) a",
            [project, root],
            "count_assets",
        )
        total = int(count[0]["total"]) if count else 0

        rows = self._read(
            "SELECT r.group_1 AS name, r.relation AS relation, "
            "COUNT(DISTINCT LOWER(r.phase)) AS phase_count, "
            "MAX(r.modified_at_utc) AS last_modified_at_utc "
            f"{base} GROUP BY r.group_1, r.relation "
            "ORDER BY r.group_1, r.relation LIMIT ? OFFSET ?",
            [project, root, limit, offset],
            "list_assets",
        )
        for row in rows:
            row["last_modified_at_utc"] = parse_timestamp(
                row["last_modified_at_utc"], "modified_at_utc"
            )
        return rows, total

    def list_asset_history(
        self,
        project: str,
        root: str,
        name: str,
        relation: str = "",
        *,
        phase: str | None = None,
    ) -> list[ReviewRecord]:
        """Every active record of one asset, newest first."""
        clauses = [
            "r.project = ?",
            "r.root = ?",
            "r.group_1 = ?",
            "r.relation = ?",
            "r.deleted = 0",
        ]
        params: list[Any] = [project, root, name, relation]
        if phase:
            clauses.append("LOWER(r.phase) = ?")
            params.append(phase.strip().lower())
        cols = ", ".join(f"r.{c}" for c in _RECORD_COLUMNS)
        sql = (
            f"SELECT {cols} FROM t_review_info r WHERE {' AND '.join(clauses)} "
            f"ORDER BY {_LATEST_ORDER}"
        )
        rows = self._read(sql, params, "list_asset_history")
        return [row_to_record(row) for row in rows]

    # -- Loading (development fixtures) ------------------------------------

    def insert_review_rows(self, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert raw review rows; ``groups`` lists are split into group_1..3."""
        prepared = []
        for row in rows:
            groups = list(row.get("groups") or [row.get("group_1", "")])
            if not groups or not groups[0]:
                raise ValidationError("review row needs a group_1/groups value", field="groups")
            groups = (groups + ["", ""])[:3]
            prepared.append(
                {
                    "id": row.get("id"),
                    "project": row["project"],
                    "root": row.get("root", "assets"),
                    "group_1": groups[0],
                    "group_2": groups[1],
                    "group_3": groups[2],
                    "relation": row.get("relation", ""),
                    "phase": row["phase"],
                    "component": row.get("component"),
                    "take": row.get("take"),
                    "work_status": row.get("work_status"),
                    "approval_status": row.get("approval_status"),
                    "submitted_at_utc": _format_timestamp(row.get("submitted_at_utc")),
                    "modified_at_utc": _format_timestamp(row["modified_at_utc"]),
                    "deleted": int(row.get("deleted", 0)),
                }
            )
        return self.insert_many("t_review_info", prepared)

    def insert_group_categories(
        self,
        categories: Sequence[Mapping[str, Any]],
        memberships: Sequence[Mapping[str, Any]],
    ) -> tuple[int, int]:
        """Insert category rows and group→category memberships.

        Returns:
            ``(categories, memberships)`` row counts.
        """
        categories_count = self.insert_many(
            "t_group_category",
            [
                {
                    "id": c["id"],
                    "project": c["project"],
                    "root": c.get("root", "assets"),
                    "path": c["path"],
                    "deleted": int(c.get("deleted", 0)),
                }
                for c in categories
            ],
        )
        memberships_count = self.insert_many(
            "t_group_category_group",
            [
                {
                    "project": m["project"],
                    "path": m["path"],
                    "group_category_id": m["group_category_id"],
                    "deleted": int(m.get("deleted", 0)),
                }
                for m in memberships
            ],
        )
        return categories_count, memberships_count
