"""Tests for reviewpivot.ops.database and the result envelope."""

from __future__ import annotations

from unittest.mock import MagicMock

from reviewpivot.ops.context import OperationContext
from reviewpivot.ops.database import check_database_health, initialize_database, load_review_records
from reviewpivot.ops.requests import DatabaseInitRequest, LoadRecordsRequest
from reviewpivot.ops.result import OperationResult, PagedResult
from reviewpivot.ops.sqlite_conn import SqliteConnection
from reviewpivot.pivot.query import RecordQuery
from reviewpivot.pivot.store import ReviewInfoRepository

PAYLOAD = {
    "review_infos": [
        {
            "id": 1,
            "project": "demo",
            "groups": ["charA"],
            "phase": "mdl",
            "approval_status": "check",
            "modified_at_utc": "2024-01-01T10:00:00Z",
        },
        {
            "id": 2,
            "project": "demo",
            "group_1": "charB",
            "phase": "rig",
            "modified_at_utc": "2024-01-02T10:00:00Z",
        },
    ],
    "group_categories": [{"id": 1, "project": "demo", "path": "characters"}],
    "group_category_groups": [{"project": "demo", "path": "charA", "group_category_id": 1}],
}


class TestInitializeDatabase:
    def test_creates_tables(self):
        conn = SqliteConnection(":memory:")
        result = initialize_database(OperationContext(conn=conn))
        assert result.success
        assert result.data.tables_created == ["t_review_info", "t_group_category", "t_group_category_group"]
        assert not result.data.dry_run

    def test_dry_run_touches_nothing(self):
        conn = MagicMock()
        result = initialize_database(OperationContext(conn=conn, dry_run=True), DatabaseInitRequest())
        assert result.data.dry_run
        conn.execute.assert_not_called()

    def test_failure(self):
        conn = MagicMock()
        conn.execute.side_effect = RuntimeError("read-only")
        result = initialize_database(OperationContext(conn=conn))
        assert result.error.code == "INTERNAL"
        assert "read-only" in result.error.message


class TestLoadReviewRecords:
    def test_loads_payload(self, conn):
        ctx = OperationContext(conn=conn)
        result = load_review_records(ctx, LoadRecordsRequest.from_payload(PAYLOAD))
        assert result.success
        assert (result.data.review_infos, result.data.group_categories, result.data.group_category_groups) == (2, 1, 1)

        repo = ReviewInfoRepository(conn)
        assert sorted(r.group_1 for r in repo.list_latest_records(RecordQuery(project="demo"))) == ["charA", "charB"]
        assert repo.list_group_paths("demo", "assets") == {"charA": "characters"}

    def test_dry_run_counts_only(self, conn):
        ctx = OperationContext(conn=conn, dry_run=True)
        result = load_review_records(ctx, LoadRecordsRequest.from_payload(PAYLOAD))
        assert result.data.dry_run
        assert result.data.review_infos == 2
        assert ReviewInfoRepository(conn).list_latest_records(RecordQuery(project="demo")) == []

    def test_missing_group_rolls_back(self, conn):
        payload = {
            "review_infos": [
                PAYLOAD["review_infos"][0],
                {"project": "demo", "phase": "mdl", "modified_at_utc": "2024-01-01T10:00:00Z"},
            ]
        }
        result = load_review_records(OperationContext(conn=conn), LoadRecordsRequest.from_payload(payload))
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.details == {"field": "groups"}
        assert ReviewInfoRepository(conn).list_latest_records(RecordQuery(project="demo")) == []

    def test_missing_category_id(self, conn):
        payload = {"group_categories": [{"project": "demo", "path": "props"}]}
        result = load_review_records(OperationContext(conn=conn), LoadRecordsRequest.from_payload(payload))
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.details == {"field": "id"}


class TestCheckDatabaseHealth:
    def test_healthy(self, conn):
        result = check_database_health(OperationContext(conn=conn))
        assert result.success
        assert result.data.connected
        assert result.data.backend == "sqlite"
        assert result.data.table_count == 3

    def test_unreachable_reports_disconnected(self):
        conn = MagicMock()
        conn.execute.side_effect = ConnectionError("refused")
        result = check_database_health(OperationContext(conn=conn))
        assert result.success
        assert not result.data.connected
        assert result.warnings == ["Health check error: refused"]


class TestResultEnvelope:
    def test_ok_to_dict(self):
        data = OperationResult.ok({"a": 1}, warnings=["w"]).to_dict()
        assert data == {"success": True, "data": {"a": 1}, "warnings": ["w"]}

    def test_fail_to_dict(self):
        data = OperationResult.fail("NOT_FOUND", "gone", details={"field": "name"}).to_dict()
        assert data["error"] == {
            "code": "NOT_FOUND",
            "message": "gone",
            "retryable": False,
            "details": {"field": "name"},
        }

    def test_paged_has_more(self):
        page = PagedResult.from_items([1, 2], total=5, limit=2, offset=2)
        assert page.has_more
        assert not PagedResult.from_items([5], total=5, limit=2, offset=4).has_more
        assert page.to_dict()["total"] == 5
