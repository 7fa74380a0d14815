"""Tests for the logs and projects API routers."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.main import app
from conftest import make_logs

client = TestClient(app)


def _camel(entries: list[dict]) -> list[dict]:
    return [{**{k: v for k, v in e.items() if k != "stream_id"}, "streamId": e["stream_id"]} for e in entries]


@pytest.fixture
def project_id(db_path):
    res = client.post("/api/projects", json={"name": "payments", "streams": [{"id": "s1", "name": "stdout"}]})
    assert res.status_code == 201
    return res.json()["id"]


# ── Service endpoints ────────────────────────────────────────────────


def test_root_banner():
    body = client.get("/").json()
    assert body["message"] == "LogHub API Server"
    assert body["endpoints"]["logs"] == "/api/logs/{projectId}"


def test_health_reports_database(db_path):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
    assert res.json()["database"] == "connected"


# ── Bulk ingestion ───────────────────────────────────────────────────


def test_bulk_ingest_returns_count(project_id):
    res = client.post("/api/logs/bulk", json={"projectId": project_id, "logs": _camel(make_logs(25))})
    assert res.status_code == 201
    assert res.json() == {"count": 25}


def test_bulk_ingest_coerces_scalars(project_id):
    logs = [{"timestamp": 1767225600, "level": "INFO", "message": True}]
    res = client.post("/api/logs/bulk", json={"projectId": project_id, "logs": logs})
    assert res.json() == {"count": 1}

    record = client.get(f"/api/logs/{project_id}").json()["logs"][0]
    assert record["timestamp"] == "1767225600"
    assert record["message"] == "true"


@pytest.mark.parametrize("logs", [[], "oops", {"level": "INFO"}, None])
def test_bulk_ingest_rejects_bad_logs(project_id, logs):
    res = client.post("/api/logs/bulk", json={"projectId": project_id, "logs": logs})
    assert res.status_code == 400
    assert res.json()["error"] == "validation_error"
    assert res.json()["detail"]


def test_bulk_ingest_unknown_project(db_path):
    res = client.post("/api/logs/bulk", json={"projectId": "ghost", "logs": make_logs(1)})
    assert res.status_code == 404
    assert res.json()["error"] == "not_found"


def test_bulk_ingest_skips_malformed_entries(project_id):
    logs = [{"message": "ok 1"}, {"message": {"nested": 1}}, {"message": "ok 2"}]
    res = client.post("/api/logs/bulk", json={"projectId": project_id, "logs": logs})
    assert res.status_code == 201
    assert res.json() == {"count": 2}

    stored = client.get(f"/api/logs/{project_id}").json()
    assert stored["total"] == 2
    assert sorted(r["message"] for r in stored["logs"]) == ["ok 1", "ok 2"]


# ── Query ────────────────────────────────────────────────────────────


def test_query_filters_and_pagination(project_id):
    logs = make_logs(6, level="INFO") + make_logs(4, level="ERROR", message="db timeout") + make_logs(2, level="WARN")
    client.post("/api/logs/bulk", json={"projectId": project_id, "logs": _camel(logs)})

    res = client.get(f"/api/logs/{project_id}", params={"level": "ERROR,WARN", "limit": 3})
    body = res.json()
    assert res.status_code == 200
    assert body["total"] == 6
    assert len(body["logs"]) == 3
    assert body["hasMore"] is True
    assert {log["level"] for log in body["logs"]} <= {"ERROR", "WARN"}
    assert body["logs"][0]["projectId"] == project_id
    assert body["logs"][0]["streamId"] == "main"

    body = client.get(f"/api/logs/{project_id}", params={"search": "TIMEOUT", "skip": 2}).json()
    assert body["total"] == 4
    assert len(body["logs"]) == 2
    assert body["hasMore"] is False


def test_query_time_window(project_id):
    client.post("/api/logs/bulk", json={"projectId": project_id, "logs": make_logs(10)})

    body = client.get(
        f"/api/logs/{project_id}",
        params={"start": "2026-01-01T00:00:03Z", "end": "2026-01-01T00:00:06Z"},
    ).json()

    assert body["total"] == 4
    assert [log["timestamp"] for log in body["logs"]][0] == "2026-01-01T00:00:06Z"


def test_query_rejects_bad_paging(project_id):
    assert client.get(f"/api/logs/{project_id}", params={"limit": 0}).status_code == 400
    assert client.get(f"/api/logs/{project_id}", params={"skip": -1}).status_code == 400
    assert client.get(f"/api/logs/{project_id}", params={"limit": "many"}).status_code == 400


def test_query_empty_project(db_path):
    body = client.get("/api/logs/unknown").json()
    assert body == {"logs": [], "total": 0, "hasMore": False}


# ── Projects ─────────────────────────────────────────────────────────


def test_project_crud(project_id):
    listed = client.get("/api/projects").json()
    assert [p["id"] for p in listed] == [project_id]
    assert listed[0]["storagePath"] == "Internal"
    assert listed[0]["streams"] == [{"id": "s1", "name": "stdout"}]

    res = client.put(f"/api/projects/{project_id}", json={"description": "prod", "sourceConfig": {"region": "eu"}})
    assert res.status_code == 200
    assert res.json()["description"] == "prod"
    assert res.json()["sourceConfig"] == {"region": "eu"}
    assert res.json()["name"] == "payments"

    assert client.get("/api/projects/missing").status_code == 404


def test_create_project_requires_name(db_path):
    res = client.post("/api/projects", json={"description": "no name"})
    assert res.status_code == 400


def test_delete_project_cascades(project_id):
    client.post("/api/logs/bulk", json={"projectId": project_id, "logs": make_logs(12)})

    res = client.delete(f"/api/projects/{project_id}")
    assert res.status_code == 200
    assert res.json() == {"success": True, "logsDeleted": 12}

    assert client.get(f"/api/logs/{project_id}").json()["total"] == 0
    assert client.get(f"/api/projects/{project_id}").status_code == 404
