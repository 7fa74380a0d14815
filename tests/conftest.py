"""Shared fixtures: a throwaway SQLite database per test.

The environment is set before any ``api`` module is imported. Importing
``api.main`` creates the tables through the real connection layer, and the
``:memory:`` path keeps that step off the disk. Batch writes run on worker
threads, so inside a test each store call gets its own connection to a
temporary file rather than one shared in-memory connection.
"""

from __future__ import annotations

import os

os.environ["LOGHUB_DB_PATH"] = ":memory:"
os.environ.pop("DATABASE_URL", None)

import pytest

import api.log_store as log_store
import api.project_database as project_db
from api.db import sqlite_connect


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point both stores at a fresh database file and create the tables."""
    path = str(tmp_path / "loghub.db")

    def _conn():
        return sqlite_connect(path, check_same_thread=False)

    monkeypatch.setattr(log_store, "get_conn", _conn)
    monkeypatch.setattr(project_db, "get_conn", _conn)
    project_db.init_project_tables()
    log_store.init_log_tables()
    return path


def make_logs(count: int, **overrides) -> list[dict]:
    """Build ``count`` ingestion entries with increasing timestamps."""
    logs = []
    for i in range(count):
        entry = {
            "timestamp": f"2026-01-01T00:{i // 60:02d}:{i % 60:02d}Z",
            "level": "INFO",
            "component": "api",
            "message": f"request {i} handled",
            "raw": f"raw line {i}",
            "stream_id": "main",
        }
        entry.update(overrides)
        logs.append(entry)
    return logs
