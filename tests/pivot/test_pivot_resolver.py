"""Tests for reviewpivot.pivot.resolver: latest record per (asset, phase)."""

from __future__ import annotations

from datetime import UTC, datetime

from reviewpivot.pivot.resolver import latest_rank, resolve_latest


def _ts(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=UTC)


class TestResolveLatest:
    def test_greatest_modified_wins(self, make_record):
        old = make_record(1, modified=_ts(1))
        new = make_record(2, modified=_ts(3))
        mid = make_record(3, modified=_ts(2))
        assert resolve_latest([old, new, mid]) == [new]

    def test_submitted_breaks_modified_tie(self, make_record):
        a = make_record(5, modified=_ts(2), submitted_at_utc=_ts(1))
        b = make_record(1, modified=_ts(2), submitted_at_utc=_ts(1, 12))
        assert resolve_latest([a, b]) == [b]

    def test_missing_submission_loses_to_any(self, make_record):
        unsubmitted = make_record(9, modified=_ts(2))
        submitted = make_record(1, modified=_ts(2), submitted_at_utc=datetime(1999, 1, 1, tzinfo=UTC))
        assert resolve_latest([unsubmitted, submitted]) == [submitted]

    def test_id_breaks_full_tie(self, make_record):
        low = make_record(3, modified=_ts(2))
        high = make_record(4, modified=_ts(2))
        assert resolve_latest([high, low]) == [high]
        assert resolve_latest([low, high]) == [high]

    def test_one_record_per_asset_phase(self, make_record):
        records = [
            make_record(1, "charA", "mdl", _ts(1)),
            make_record(2, "charA", "mdl", _ts(2)),
            make_record(3, "charA", "rig", _ts(1)),
            make_record(4, "charB", "mdl", _ts(1)),
            make_record(5, "charA", "mdl", _ts(1), relation="lod"),
        ]
        latest = resolve_latest(records)
        partitions = [(r.key, r.phase) for r in latest]
        assert len(partitions) == len(set(partitions)) == 4
        assert {r.id for r in latest} == {2, 3, 4, 5}

    def test_deleted_records_are_skipped(self, make_record):
        active = make_record(1, modified=_ts(1))
        deleted = make_record(2, modified=_ts(5), deleted=1)
        assert resolve_latest([active, deleted]) == [active]

    def test_asset_with_only_deleted_records_disappears(self, make_record):
        assert resolve_latest([make_record(1, deleted=1)]) == []

    def test_first_seen_partition_order(self, make_record):
        records = [
            make_record(1, "zeta", "mdl"),
            make_record(2, "alpha", "mdl"),
            make_record(3, "zeta", "mdl", _ts(4)),
        ]
        assert [r.group_1 for r in resolve_latest(records)] == ["zeta", "alpha"]

    def test_idempotent(self, make_record):
        records = [
            make_record(1, "charA", "mdl", _ts(1)),
            make_record(2, "charA", "mdl", _ts(2), submitted_at_utc=_ts(2)),
            make_record(3, "charA", "mdl", _ts(2)),
            make_record(4, "charB", "rig", _ts(3)),
        ]
        once = resolve_latest(records)
        assert resolve_latest(once) == once
        assert resolve_latest(resolve_latest(once)) == once


class TestLatestRank:
    def test_rank_orders_like_resolver(self, make_record):
        records = [
            make_record(1, modified=_ts(2)),
            make_record(2, modified=_ts(2), submitted_at_utc=_ts(1)),
            make_record(3, modified=_ts(1), submitted_at_utc=_ts(9)),
        ]
        assert max(records, key=latest_rank).id == 2
