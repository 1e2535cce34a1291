"""
Integration tests for the review endpoints using FastAPI TestClient.

These tests exercise the full router → ops → response path against a
seeded SQLite file.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from reviewpivot.api.app import create_app
from reviewpivot.api.settings import ReviewPivotAPISettings
from reviewpivot.ops.result import PivotPagedResult

PIVOT = "/api/v1/projects/demo/reviews/assets/pivot"


@pytest.fixture()
def client(seeded_db_path, tmp_path):
    settings = ReviewPivotAPISettings(
        database_url=f"sqlite:///{seeded_db_path}",
        data_dir=str(tmp_path),
    )
    app = create_app(settings=settings)
    with TestClient(app) as c:
        yield c


class TestPivotEndpoint:
    def test_default_page(self, client):
        resp = client.get(PIVOT)
        assert resp.status_code == 200
        body = resp.json()
        assert [row["name"] for row in body["data"]] == ["charA", "charA", "charB", "envY", "propX"]
        assert body["page"]["total"] == 5
        assert body["page"]["limit"] == 15
        assert body["query"]["sort"] == "name"
        assert body["truncated"] is False
        assert body["groups"] is None
        assert "Link" not in resp.headers

    def test_phase_columns(self, client):
        body = client.get(PIVOT, params={"name": "charB"}).json()
        row = body["data"][0]
        assert row["mdl_take"] == "007"
        assert row["mdl_approval_status"] == "check"
        assert row["mdl_work_status"] == "svRetake"
        assert row["ldv_take"] == "-"
        assert row["rig_take"] is None
        assert row["top_group_node"] == "characters"

    def test_link_header(self, client):
        resp = client.get(PIVOT, params={"page": 2, "per_page": 2})
        assert resp.status_code == 200
        link = resp.headers["Link"]
        assert 'rel="first"' in link
        assert 'rel="prev"' in link
        assert 'rel="next"' in link
        assert 'rel="last"' in link
        assert "page=3" in link
        rels = [entry["rel"] for entry in resp.json()["links"]]
        assert rels == ["first", "prev", "next", "last"]

    def test_last_page_has_no_next(self, client):
        resp = client.get(PIVOT, params={"page": 3, "per_page": 2})
        assert [row["name"] for row in resp.json()["data"]] == ["propX"]
        assert 'rel="next"' not in resp.headers["Link"]

    def test_sort_and_direction(self, client):
        body = client.get(PIVOT, params={"sort": "mdl_take", "dir": "desc"}).json()
        # charB 007 > charA 003, assets without an mdl take stay last
        assert [row["name"] for row in body["data"][:2]] == ["charB", "charA"]

    def test_sort_by_latest_submission(self, client):
        body = client.get(PIVOT, params={"sort": "submitted", "dir": "desc"}).json()
        # only charA has submissions; the rest keep name order at the end
        assert [(row["name"], row["relation"]) for row in body["data"]] == [
            ("charA", ""),
            ("charA", "lod"),
            ("charB", ""),
            ("envY", ""),
            ("propX", ""),
        ]
        assert body["query"]["sort"] == "submitted"
        assert body["warnings"] == []

    def test_status_filters_accept_comma_lists(self, client):
        body = client.get(PIVOT, params={"approval_status": "dirApproved,clientApproved"}).json()
        assert [row["name"] for row in body["data"]] == ["charA", "charB", "propX"]

    def test_legacy_status_params(self, client):
        body = client.get(PIVOT, params={"phase": "mdl", "appr": "check", "work": "svretake"}).json()
        # locked to mdl: approval OR work on that phase
        assert [(row["name"], row["relation"]) for row in body["data"]] == [("charA", "lod"), ("charB", "")]
        assert body["query"]["approval_status"] == ["check"]

    def test_any_phase_sets_combine_across_phases(self, client):
        # charA: mdl approval dirApproved, rig work check
        body = client.get(PIVOT, params={"approval_status": "dirApproved", "work_status": "check"}).json()
        assert [(row["name"], row["relation"]) for row in body["data"]] == [("charA", "")]

    def test_grouped_view(self, client):
        body = client.get(PIVOT, params={"view": "grouped"}).json()
        assert [g["top_group_node"] for g in body["groups"]] == ["characters", "props", "Unassigned"]
        assert body["groups"][0]["total_count"] == 3
        assert body["query"]["view"] == "grouped"

    def test_unknown_sort_warns(self, client):
        resp = client.get(PIVOT, params={"sort": "bogus"})
        assert resp.status_code == 200
        assert resp.json()["warnings"] == ["unknown sort key 'bogus'; sorting by name"]

    def test_per_page_out_of_range(self, client):
        resp = client.get(PIVOT, params={"per_page": 0})
        assert resp.status_code == 400
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["detail"] == "VALIDATION_FAILED"
        assert body["errors"][0]["field"] == "per_page"

    def test_non_integer_page(self, client):
        resp = client.get(PIVOT, params={"page": "two"})
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "page"

    def test_bad_view(self, client):
        resp = client.get(PIVOT, params={"view": "tree"})
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "view"

    def test_unknown_project_is_empty(self, client):
        body = client.get("/api/v1/projects/nope/reviews/assets/pivot").json()
        assert body["data"] == []
        assert body["page"]["total"] == 0

    @pytest.mark.parametrize(
        ("code", "status"),
        [("STORE_ERROR", 503), ("DEADLINE_EXCEEDED", 504), ("CANCELLED", 499), ("INTERNAL", 500)],
    )
    def test_error_codes_map_to_status(self, client, code, status):
        failed = PivotPagedResult.fail(code, "it broke")
        with patch("reviewpivot.ops.assets.list_asset_pivots", return_value=failed):
            resp = client.get(PIVOT)
        assert resp.status_code == status
        assert resp.json()["title"] == "it broke"


class TestAssetEndpoints:
    def test_list_assets(self, client):
        body = client.get("/api/v1/projects/demo/reviews/assets", params={"limit": 2}).json()
        assert [(a["name"], a["relation"]) for a in body["data"]] == [("charA", ""), ("charA", "lod")]
        assert body["page"]["has_more"] is True

    def test_latest_per_phase(self, client):
        body = client.get("/api/v1/projects/demo/reviews/assets/charA").json()
        assert sorted(r["id"] for r in body["data"]) == [2, 3]

    def test_history(self, client):
        body = client.get("/api/v1/projects/demo/reviews/assets/charA", params={"history": "true"}).json()
        assert [r["id"] for r in body["data"]] == [3, 2, 1]

    def test_relation(self, client):
        body = client.get("/api/v1/projects/demo/reviews/assets/charA/lod").json()
        assert [r["id"] for r in body["data"]] == [8]
        assert body["data"][0]["phase"] == "mdl"

    def test_not_found(self, client):
        resp = client.get("/api/v1/projects/demo/reviews/assets/ghost")
        assert resp.status_code == 404
        assert resp.json()["title"] == "No review records for asset 'ghost'"

    def test_bad_phase(self, client):
        resp = client.get("/api/v1/projects/demo/reviews/assets/charA", params={"phase": "xyz"})
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "phase"

    def test_phases(self, client):
        body = client.get("/api/v1/reviews/phases").json()
        assert [p["code"] for p in body["data"]["phases"]] == ["mdl", "rig", "bld", "dsn", "ldv"]
        assert "dirapproved" in [s.lower() for s in body["data"]["approval_statuses"]]


class TestHealthEndpoints:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["database"]["table_count"] == 3

    def test_live(self, client):
        assert client.get("/health/live").json()["status"] == "healthy"

    def test_ready(self, client):
        assert client.get("/health/ready").status_code == 200

    def test_request_id_header(self, client):
        resp = client.get("/health/live", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["X-Request-ID"] == "abc-123"
