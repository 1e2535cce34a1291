"""Tests for reviewpivot.pivot.store against the seeded SQLite review log."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime, timedelta, timezone

import pytest

from reviewpivot.core.deadline import Deadline
from reviewpivot.core.dialect import SQLiteDialect
from reviewpivot.core.errors import DeadlineExceeded, QueryError, ValidationError
from reviewpivot.pivot.phases import Phase
from reviewpivot.pivot.query import NameMatch, RecordQuery, StatusFilter
from reviewpivot.pivot.store import ReviewInfoRepository, parse_timestamp, row_to_record


def _ids(records):
    return sorted(r.id for r in records)


class TestParseTimestamp:
    def test_iso_text_with_z(self):
        assert parse_timestamp("2024-01-05T10:00:00Z") == datetime(2024, 1, 5, 10, tzinfo=UTC)

    def test_offset_is_normalised_to_utc(self):
        parsed = parse_timestamp("2024-01-05T12:00:00+02:00")
        assert parsed == datetime(2024, 1, 5, 10, tzinfo=UTC)
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_is_utc(self):
        assert parse_timestamp(datetime(2024, 1, 5)).tzinfo is not None

    def test_aware_datetime(self):
        value = datetime(2024, 1, 5, 3, tzinfo=timezone(timedelta(hours=-5)))
        assert parse_timestamp(value) == datetime(2024, 1, 5, 8, tzinfo=UTC)

    def test_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_garbage(self):
        with pytest.raises(QueryError):
            parse_timestamp("yesterday", "modified_at_utc")
        with pytest.raises(QueryError):
            parse_timestamp(12345)


class TestRowToRecord:
    def test_trailing_empty_groups_dropped(self):
        record = row_to_record(
            {
                "id": 1,
                "project": "demo",
                "root": "shots",
                "group_1": "sq010",
                "group_2": "sh0100",
                "group_3": "",
                "relation": None,
                "phase": " LDV ",
                "modified_at_utc": "2024-01-01T00:00:00Z",
            }
        )
        assert record.groups == ("sq010", "sh0100")
        assert record.relation == ""
        assert record.phase == "ldv"

    def test_missing_modified_is_an_error(self):
        with pytest.raises(QueryError):
            row_to_record({"id": 3, "project": "p", "root": "assets", "group_1": "a", "phase": "mdl", "modified_at_utc": None})


class TestListLatestRecords:
    def test_latest_per_phase(self, repo):
        records = repo.list_latest_records(RecordQuery(project="demo"))
        # 1 is superseded by 2, 7 is deleted
        assert _ids(records) == [2, 3, 4, 5, 6, 8, 9]
        by_id = {r.id: r for r in records}
        assert by_id[2].submitted_at_utc == datetime(2024, 1, 4, 9, tzinfo=UTC)
        assert by_id[8].phase == "mdl"
        assert by_id[8].relation == "lod"

    def test_window_and_in_memory_agree(self, seeded_conn):
        window = ReviewInfoRepository(seeded_conn, SQLiteDialect())
        plain = ReviewInfoRepository(seeded_conn, SQLiteDialect(window_functions=False))
        for query in (
            RecordQuery(project="demo"),
            RecordQuery(project="demo", name="char"),
            RecordQuery(project="demo", name="A", name_match=NameMatch.CONTAINS),
        ):
            assert _ids(window.list_latest_records(query)) == _ids(plain.list_latest_records(query))

    def test_tie_break_submitted_then_id(self, conn):
        repo = ReviewInfoRepository(conn)
        same = "2024-02-01T00:00:00Z"
        repo.insert_review_rows(
            [
                {"id": 10, "project": "p", "groups": ["a"], "phase": "mdl", "modified_at_utc": same},
                {
                    "id": 11,
                    "project": "p",
                    "groups": ["a"],
                    "phase": "mdl",
                    "modified_at_utc": same,
                    "submitted_at_utc": "2024-01-01T00:00:00Z",
                },
                {"id": 12, "project": "p", "groups": ["b"], "phase": "rig", "modified_at_utc": same},
                {"id": 13, "project": "p", "groups": ["b"], "phase": "rig", "modified_at_utc": same},
            ]
        )
        repo.commit()
        for dialect in (SQLiteDialect(), SQLiteDialect(window_functions=False)):
            found = ReviewInfoRepository(conn, dialect).list_latest_records(RecordQuery(project="p"))
            assert _ids(found) == [11, 13]

    def test_prefix_name_filter(self, repo):
        records = repo.list_latest_records(RecordQuery(project="demo", name="CHAR"))
        assert {r.group_1 for r in records} == {"charA", "charB"}

    def test_contains_name_filter(self, repo):
        records = repo.list_latest_records(RecordQuery(project="demo", name="rop", name_match=NameMatch.CONTAINS))
        assert {r.group_1 for r in records} == {"propX"}

    def test_exact_name_filter(self, repo):
        records = repo.list_latest_records(RecordQuery(project="demo", name="chara", name_match=NameMatch.EXACT))
        assert {r.group_1 for r in records} == {"charA"}

    def test_like_wildcards_are_literal(self, conn):
        repo = ReviewInfoRepository(conn)
        repo.insert_review_rows(
            [
                {"id": 1, "project": "p", "groups": ["a_b"], "phase": "mdl", "modified_at_utc": "2024-01-01T00:00:00Z"},
                {"id": 2, "project": "p", "groups": ["axb"], "phase": "mdl", "modified_at_utc": "2024-01-01T00:00:00Z"},
                {"id": 3, "project": "p", "groups": ["100%"], "phase": "mdl", "modified_at_utc": "2024-01-01T00:00:00Z"},
            ]
        )
        assert _ids(repo.list_latest_records(RecordQuery(project="p", name="a_"))) == [1]
        assert _ids(repo.list_latest_records(RecordQuery(project="p", name="%", name_match=NameMatch.CONTAINS))) == [3]

    def test_non_ascii_names_fold_case(self, conn):
        repo = ReviewInfoRepository(conn)
        repo.insert_review_rows(
            [
                {"id": 1, "project": "p", "groups": ["Ärger"], "phase": "mdl", "modified_at_utc": "2024-01-01T00:00:00Z"},
                {"id": 2, "project": "p", "groups": ["ÉCLAIR"], "phase": "rig", "modified_at_utc": "2024-01-01T00:00:00Z"},
                {"id": 3, "project": "p", "groups": ["arbre"], "phase": "mdl", "modified_at_utc": "2024-01-01T00:00:00Z"},
            ]
        )
        for dialect in (SQLiteDialect(), SQLiteDialect(window_functions=False)):
            store = ReviewInfoRepository(conn, dialect)
            assert _ids(store.list_latest_records(RecordQuery(project="p", name="är"))) == [1]
            assert _ids(store.list_latest_records(RecordQuery(project="p", name="ÄR"))) == [1]
            assert _ids(
                store.list_latest_records(RecordQuery(project="p", name="clair", name_match=NameMatch.CONTAINS))
            ) == [2]
            assert _ids(
                store.list_latest_records(RecordQuery(project="p", name="éclair", name_match=NameMatch.EXACT))
            ) == [2]

    def test_quote_in_name_is_bound(self, repo):
        assert repo.list_latest_records(RecordQuery(project="demo", name="x' OR '1'='1")) == []

    def test_relation_filter(self, repo):
        records = repo.list_latest_records(RecordQuery(project="demo", relation="lod"))
        assert _ids(records) == [8]

    def test_locked_status_keeps_all_phases_of_matching_assets(self, repo):
        query = RecordQuery(
            project="demo",
            locked_phase=Phase.MDL,
            statuses=StatusFilter(approval=frozenset({"dirapproved"})),
        )
        records = repo.list_latest_records(query)
        # charA matches on its latest mdl record and keeps its rig record
        assert _ids(records) == [2, 3]

    def test_locked_status_uses_latest_record_only(self, repo):
        query = RecordQuery(
            project="demo",
            locked_phase=Phase.MDL,
            statuses=StatusFilter(approval=frozenset({"dirretake"})),
        )
        assert repo.list_latest_records(query) == []

    def test_locked_status_work_or_approval(self, repo):
        query = RecordQuery(
            project="demo",
            locked_phase=Phase.MDL,
            statuses=StatusFilter(approval=frozenset({"check"}), work=frozenset({"svretake"})),
        )
        # charB hits both sets, charA/lod only the approval set
        assert _ids(repo.list_latest_records(query)) == [4, 5, 8]

    def test_locked_status_work_alone(self, repo):
        query = RecordQuery(
            project="demo",
            locked_phase=Phase.MDL,
            statuses=StatusFilter(approval=frozenset({"omit"}), work=frozenset({"svapproved"})),
        )
        assert _ids(repo.list_latest_records(query)) == [2, 3]

    def test_unknown_project_is_empty(self, repo):
        assert repo.list_latest_records(RecordQuery(project="nope")) == []

    def test_missing_project(self, repo):
        with pytest.raises(ValidationError):
            repo.list_latest_records(RecordQuery(project=""))

    def test_driver_error_propagates(self, conn):
        conn.execute("DROP TABLE t_review_info")
        with pytest.raises(sqlite3.OperationalError, match="no such table"):
            ReviewInfoRepository(conn).list_latest_records(RecordQuery(project="demo"))

    def test_expired_deadline(self, seeded_conn):
        repo = ReviewInfoRepository(seeded_conn, deadline=Deadline.after(0))
        with pytest.raises(DeadlineExceeded):
            repo.list_latest_records(RecordQuery(project="demo"))


class TestOtherReads:
    def test_group_paths(self, repo):
        assert repo.list_group_paths("demo", "assets") == {
            "charA": "characters/main",
            "charB": "characters/main",
            "propX": "props",
        }

    def test_group_paths_skip_deleted(self, conn):
        repo = ReviewInfoRepository(conn)
        repo.insert_group_categories(
            [{"id": 1, "project": "p", "path": "old", "deleted": 1}, {"id": 2, "project": "p", "path": "new"}],
            [
                {"project": "p", "path": "a", "group_category_id": 1},
                {"project": "p", "path": "a", "group_category_id": 2},
                {"project": "p", "path": "b", "group_category_id": 2, "deleted": 1},
            ],
        )
        assert repo.list_group_paths("p", "assets") == {"a": "new"}

    def test_list_assets(self, repo):
        rows, total = repo.list_assets("demo", "assets", limit=2, offset=0)
        assert total == 5
        assert [(r["name"], r["relation"]) for r in rows] == [("charA", ""), ("charA", "lod")]
        assert rows[0]["phase_count"] == 2
        assert rows[0]["last_modified_at_utc"] == datetime(2024, 1, 6, 10, tzinfo=UTC)

    def test_list_assets_offset(self, repo):
        rows, total = repo.list_assets("demo", "assets", limit=10, offset=4)
        assert total == 5
        assert [r["name"] for r in rows] == ["propX"]

    def test_history_newest_first(self, repo):
        history = repo.list_asset_history("demo", "assets", "charA")
        assert [r.id for r in history] == [3, 2, 1]

    def test_history_phase_filter(self, repo):
        history = repo.list_asset_history("demo", "assets", "charA", phase="MDL")
        assert [r.id for r in history] == [2, 1]

    def test_history_skips_deleted(self, repo):
        assert [r.id for r in repo.list_asset_history("demo", "assets", "propX")] == [6]


class TestLoading:
    def test_groups_split_into_columns(self, conn):
        repo = ReviewInfoRepository(conn)
        repo.insert_review_rows(
            [{"id": 1, "project": "p", "root": "shots", "groups": ["sq010", "sh0100"], "phase": "ldv", "modified_at_utc": "2024-01-01T00:00:00Z"}]
        )
        record = repo.list_latest_records(RecordQuery(project="p", root="shots"))[0]
        assert record.groups == ("sq010", "sh0100")

    def test_missing_group(self, conn):
        with pytest.raises(ValidationError) as exc:
            ReviewInfoRepository(conn).insert_review_rows(
                [{"project": "p", "phase": "mdl", "modified_at_utc": "2024-01-01T00:00:00Z"}]
            )
        assert exc.value.field == "groups"
