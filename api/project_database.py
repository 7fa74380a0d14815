"""Persistence for projects: the namespaces that own log records.

Supports SQLite (local dev) and PostgreSQL (production) via api.db layer.
Streams and source configuration are stored as JSON text columns.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from api.db import adapt_sql, connection_errors, get_conn, placeholder
from api.errors import StoreUnavailable

_CREATE_PROJECTS = """
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT DEFAULT '',
    storage_path TEXT DEFAULT 'Internal',
    streams_json TEXT DEFAULT '[]',
    source_config_json TEXT DEFAULT '{}',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


def _open():
    try:
        return get_conn()
    except connection_errors() as e:
        raise StoreUnavailable(f"Cannot connect to project store: {e}") from e


def _decode(row) -> dict:
    project = dict(row)
    project["streams"] = json.loads(project.pop("streams_json") or "[]")
    project["source_config"] = json.loads(project.pop("source_config_json") or "{}")
    return project


def init_project_tables() -> None:
    """Create the projects table if it doesn't exist."""
    conn = _open()
    try:
        conn.execute(_CREATE_PROJECTS)
        conn.commit()
    finally:
        conn.close()


def create_project(
    name: str,
    description: str = "",
    storage_path: str = "Internal",
    streams: list[dict] | None = None,
    source_config: dict | None = None,
) -> str:
    """Create a project and return its ID."""
    project_id = str(uuid.uuid4())
    now = datetime.now(timezone.utc).isoformat()
    p = placeholder
    conn = _open()
    try:
        conn.execute(
            f"""INSERT INTO projects
               (id, name, description, storage_path, streams_json,
                source_config_json, created_at, updated_at)
               VALUES ({p}, {p}, {p}, {p}, {p}, {p}, {p}, {p})""",
            (
                project_id,
                name,
                description,
                storage_path,
                json.dumps(streams or []),
                json.dumps(source_config) if source_config is not None else "{}",
                now,
                now,
            ),
        )
        conn.commit()
        return project_id
    finally:
        conn.close()


def list_projects() -> list[dict]:
    """List all projects, newest first."""
    conn = _open()
    try:
        rows = conn.execute(
            "SELECT * FROM projects ORDER BY created_at DESC"
        ).fetchall()
        return [_decode(row) for row in rows]
    except connection_errors() as e:
        raise StoreUnavailable(f"Project listing failed: {e}") from e
    finally:
        conn.close()


def get_project(project_id: str) -> dict | None:
    """Get a project by ID, or None."""
    conn = _open()
    try:
        row = conn.execute(
            adapt_sql("SELECT * FROM projects WHERE id = ?"), (project_id,)
        ).fetchone()
        return _decode(row) if row else None
    except connection_errors() as e:
        raise StoreUnavailable(f"Project lookup failed: {e}") from e
    finally:
        conn.close()


_ALLOWED_PROJECT_FIELDS = {
    "name",
    "description",
    "storage_path",
    "streams",
    "source_config",
}

_JSON_COLUMNS = {"streams": "streams_json", "source_config": "source_config_json"}


def update_project(project_id: str, **fields) -> None:
    """Update allowed fields on a project."""
    updates = {}
    for key, value in fields.items():
        if key not in _ALLOWED_PROJECT_FIELDS:
            continue
        if key in _JSON_COLUMNS:
            updates[_JSON_COLUMNS[key]] = json.dumps(value)
        else:
            updates[key] = value
    if not updates:
        return
    updates["updated_at"] = datetime.now(timezone.utc).isoformat()
    p = placeholder
    set_clause = ", ".join(f"{k} = {p}" for k in updates)
    values = list(updates.values()) + [project_id]
    conn = _open()
    try:
        conn.execute(f"UPDATE projects SET {set_clause} WHERE id = {p}", values)
        conn.commit()
    finally:
        conn.close()


def delete_project_record(project_id: str) -> bool:
    """Delete the project row only. Returns False if it did not exist.

    Owned log records are removed separately, see
    api.services.delete_project_cascade.
    """
    conn = _open()
    try:
        cur = conn.execute(
            adapt_sql("DELETE FROM projects WHERE id = ?"), (project_id,)
        )
        conn.commit()
        return cur.rowcount > 0
    except connection_errors() as e:
        raise StoreUnavailable(f"Project delete failed: {e}") from e
    finally:
        conn.close()
