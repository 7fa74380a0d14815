"""Record store for ingested log entries.

Supports SQLite (local dev) and PostgreSQL (production) via api.db layer.
Records are insert-only; they disappear only when their project is deleted.
"""

from __future__ import annotations

import uuid

from pydantic import ValidationError as PydanticValidationError

from api.db import (
    adapt_sql,
    connection_errors,
    get_conn,
    is_postgres,
    placeholder,
    row_errors,
)
from api.errors import StoreUnavailable
from models.log_record import LogInput

_CREATE_LOGS = """
CREATE TABLE IF NOT EXISTS logs (
    id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL,
    timestamp TEXT,
    level TEXT,
    component TEXT,
    message TEXT,
    raw TEXT,
    stream_id TEXT
)
"""

_CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_logs_project_id ON logs (project_id)",
    "CREATE INDEX IF NOT EXISTS idx_logs_level ON logs (level)",
    "CREATE INDEX IF NOT EXISTS idx_logs_component ON logs (component)",
    "CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON logs (timestamp)",
    # project-scoped newest-first scans
    "CREATE INDEX IF NOT EXISTS idx_logs_project_timestamp ON logs (project_id, timestamp DESC)",
]

LOG_COLUMNS = (
    "id",
    "project_id",
    "timestamp",
    "level",
    "component",
    "message",
    "raw",
    "stream_id",
)


class BulkWriteError(Exception):
    """Some rows of a bulk write were rejected; the others were stored."""

    def __init__(self, inserted: int, errors: list[str]):
        super().__init__(f"{len(errors)} row(s) rejected, {inserted} inserted")
        self.inserted = inserted
        self.errors = errors


def _open():
    try:
        return get_conn()
    except connection_errors() as e:
        raise StoreUnavailable(f"Cannot connect to log store: {e}") from e


def init_log_tables() -> None:
    """Create the logs table and its indexes if they don't exist."""
    conn = _open()
    try:
        conn.execute(_CREATE_LOGS)
        for ddl in _CREATE_INDEXES:
            conn.execute(ddl)
        conn.commit()
    finally:
        conn.close()


def _log_row(record: dict) -> tuple:
    entry = LogInput.model_validate(record)
    return (
        str(uuid.uuid4()),
        record.get("project_id"),
        entry.timestamp,
        entry.level,
        entry.component,
        entry.message,
        entry.raw,
        entry.stream_id,
    )


def _insert_each(conn, sql: str, rows: list[tuple[int, tuple]]) -> tuple[int, list[str]]:
    """Insert rows one at a time, skipping the ones the store rejects."""
    inserted = 0
    errors: list[str] = []
    for index, row in rows:
        try:
            if is_postgres():
                conn.execute("SAVEPOINT log_row")
            conn.execute(sql, row)
            if is_postgres():
                conn.execute("RELEASE SAVEPOINT log_row")
            inserted += 1
        except row_errors() as e:
            if is_postgres():
                conn.execute("ROLLBACK TO SAVEPOINT log_row")
            errors.append(f"row {index}: {e}")
    return inserted, errors


def insert_logs(records: list[dict]) -> int:
    """Write one batch of records without stopping at rejected rows.

    Entries that do not fit the record shape (a nested object as message,
    say) are rejected up front; the rest go in as a single bulk statement.
    If the store rejects a row, the batch is replayed row by row so every
    acceptable record is still written. Returns the number of rows stored;
    raises BulkWriteError (carrying that number) if any row was rejected.
    """
    if not records:
        return 0

    rows: list[tuple[int, tuple]] = []
    errors: list[str] = []
    for index, record in enumerate(records):
        try:
            rows.append((index, _log_row(record)))
        except PydanticValidationError as e:
            errors.append(f"row {index}: {e.errors()[0]['msg']}")

    inserted = 0
    if rows:
        inserted, store_errors = _write_rows(rows)
        errors.extend(store_errors)

    if errors:
        raise BulkWriteError(inserted, errors)
    return inserted


def _write_rows(rows: list[tuple[int, tuple]]) -> tuple[int, list[str]]:
    p = placeholder
    sql = (
        f"INSERT INTO logs ({', '.join(LOG_COLUMNS)}) "
        f"VALUES ({', '.join([p] * len(LOG_COLUMNS))})"
    )

    conn = _open()
    try:
        try:
            conn.executemany(sql, [row for _, row in rows])
            conn.commit()
            return len(rows), []
        except row_errors():
            conn.rollback()
        inserted, errors = _insert_each(conn, sql, rows)
        conn.commit()
        return inserted, errors
    except connection_errors() as e:
        raise StoreUnavailable(f"Log store write failed: {e}") from e
    finally:
        conn.close()


def count_logs(where: str, params: list) -> int:
    """Count records matching a filter built by api.log_query."""
    conn = _open()
    try:
        row = conn.execute(
            f"SELECT COUNT(*) AS cnt FROM logs WHERE {where}", params
        ).fetchone()
        return int(row["cnt"]) if row else 0
    except connection_errors() as e:
        raise StoreUnavailable(f"Log count failed: {e}") from e
    finally:
        conn.close()


def find_logs(where: str, params: list, limit: int, skip: int = 0) -> list[dict]:
    """Fetch a window of matching records, newest first, as plain dicts."""
    p = placeholder
    sql = (
        f"SELECT {', '.join(LOG_COLUMNS)} FROM logs WHERE {where} "
        f"ORDER BY timestamp DESC, id LIMIT {p} OFFSET {p}"
    )
    conn = _open()
    try:
        rows = conn.execute(sql, [*params, limit, skip]).fetchall()
        return [dict(row) for row in rows]
    except connection_errors() as e:
        raise StoreUnavailable(f"Log fetch failed: {e}") from e
    finally:
        conn.close()


def delete_project_logs(project_id: str) -> int:
    """Delete every record owned by a project. Returns how many were removed."""
    conn = _open()
    try:
        cur = conn.execute(
            adapt_sql("DELETE FROM logs WHERE project_id = ?"), (project_id,)
        )
        deleted = cur.rowcount
        conn.commit()
        return max(deleted, 0)
    except connection_errors() as e:
        raise StoreUnavailable(f"Log delete failed: {e}") from e
    finally:
        conn.close()


def ping() -> bool:
    """True when the store answers a trivial query."""
    try:
        conn = _open()
    except StoreUnavailable:
        return False
    try:
        conn.execute("SELECT 1").fetchone()
        return True
    except connection_errors():
        return False
    finally:
        conn.close()
