"""Shared database connection layer.

Supports both SQLite (local dev) and PostgreSQL (production).
Set DATABASE_URL env var to use PostgreSQL; otherwise falls back to SQLite.

Usage:
    from api.db import get_conn, placeholder

    conn = get_conn()
    try:
        conn.execute(f"SELECT * FROM logs WHERE project_id = {placeholder}", (pid,))
        conn.commit()
    finally:
        conn.close()
"""

import os
import sqlite3

DATABASE_URL = os.getenv("DATABASE_URL")

# ── Public helpers ────────────────────────────────────────

def is_postgres() -> bool:
    """True when using PostgreSQL (DATABASE_URL is set)."""
    return DATABASE_URL is not None


# Placeholder character for parameterized queries
placeholder = "%s" if is_postgres() else "?"


def get_conn():
    """Return a database connection (PostgreSQL or SQLite)."""
    if is_postgres():
        return _pg_conn()
    return _sqlite_conn()


def adapt_sql(sql: str) -> str:
    """Convert SQLite SQL to PostgreSQL-compatible SQL when needed."""
    if not is_postgres():
        return sql
    return sql.replace("?", "%s")


def like_operator() -> str:
    """Case-insensitive LIKE for the active backend.

    On SQLite both sides are passed through ``casefold()`` (see
    ``fold_column`` / ``fold_term``) because its LIKE ignores only ASCII case.
    PostgreSQL's ILIKE handles Unicode itself.
    """
    return "ILIKE" if is_postgres() else "LIKE"


def fold_column(column: str) -> str:
    """SQL expression for ``column`` ready for a case-insensitive LIKE."""
    return column if is_postgres() else f"casefold({column})"


def fold_term(term: str) -> str:
    """Search term counterpart of ``fold_column``."""
    return term if is_postgres() else term.casefold()


def row_errors() -> tuple[type[BaseException], ...]:
    """Exceptions raised when the store rejects a single row."""
    errors: tuple[type[BaseException], ...] = (
        sqlite3.IntegrityError,
        # unsupported parameter types (InterfaceError before Python 3.12)
        sqlite3.InterfaceError,
        sqlite3.ProgrammingError,
    )
    if is_postgres():
        import psycopg2
        errors += (psycopg2.IntegrityError, psycopg2.DataError)
    return errors


def connection_errors() -> tuple[type[BaseException], ...]:
    """Exceptions meaning the store itself is unreachable or failing."""
    errors: tuple[type[BaseException], ...] = (sqlite3.OperationalError,)
    if is_postgres():
        import psycopg2
        from psycopg2 import pool
        errors += (psycopg2.OperationalError, psycopg2.InterfaceError, pool.PoolError)
    return errors


# ── SQLite connection ────────────────────────────────────

_SQLITE_PATH = os.getenv("LOGHUB_DB_PATH", "data/loghub.db")

# Bulk writes run on several worker threads at once; wait for the write lock
# instead of failing immediately.
_SQLITE_TIMEOUT = float(os.getenv("LOGHUB_DB_TIMEOUT", "30"))


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def sqlite_connect(path: str, **kwargs) -> sqlite3.Connection:
    """Open a SQLite connection with dict-like rows and a Unicode ``casefold()``."""
    conn = sqlite3.connect(path, timeout=_SQLITE_TIMEOUT, **kwargs)
    conn.row_factory = sqlite3.Row
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    return conn


def _sqlite_conn() -> sqlite3.Connection:
    os.makedirs(os.path.dirname(_SQLITE_PATH) or ".", exist_ok=True)
    return sqlite_connect(_SQLITE_PATH)


# ── PostgreSQL connection ────────────────────────────────

_pg_pool = None


def _pg_conn():
    """Get a connection from the psycopg2 pool."""
    global _pg_pool
    if _pg_pool is None:
        from psycopg2 import pool
        _pg_pool = pool.ThreadedConnectionPool(
            minconn=1,
            # one connection per concurrent batch write plus request traffic
            maxconn=int(os.getenv("LOGHUB_PG_POOL_MAX", "10")),
            dsn=DATABASE_URL,
        )
    conn = _pg_pool.getconn()
    # Wrap so that conn.close() returns it to the pool
    return _PgConnWrapper(conn, _pg_pool)


class _PgConnWrapper:
    """Wraps a psycopg2 connection to match the SQLite usage pattern.

    - close() returns the connection to the pool instead of destroying it
    - execute() uses RealDictCursor so rows behave like dicts
    - commit() delegates to the underlying connection
    """

    def __init__(self, conn, pool):
        self._conn = conn
        self._pool = pool

    def execute(self, sql, params=None):
        from psycopg2.extras import RealDictCursor
        cur = self._conn.cursor(cursor_factory=RealDictCursor)
        cur.execute(sql, params)
        return cur

    def executemany(self, sql, params_list):
        from psycopg2.extras import RealDictCursor
        cur = self._conn.cursor(cursor_factory=RealDictCursor)
        cur.executemany(sql, params_list)
        return cur

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        # Return to pool instead of closing
        try:
            self._conn.rollback()
        except Exception:
            pass
        self._pool.putconn(self._conn)
