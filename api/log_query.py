"""Query engine: filter, search and paginate a project's log records."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from api import log_store
from api.db import fold_column, fold_term, like_operator, placeholder

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = int(os.getenv("LOG_QUERY_DEFAULT_LIMIT", "50000"))

_SEARCH_FIELDS = ("message", "raw", "component")


@dataclass
class LogQuery:
    project_id: str
    levels: list[str] | None = None
    start: str | None = None
    end: str | None = None
    search: str | None = None
    limit: int = DEFAULT_LIMIT
    skip: int = 0


@dataclass
class LogPage:
    records: list[dict] = field(default_factory=list)
    total: int = 0
    has_more: bool = False


def parse_levels(level: str | None) -> list[str] | None:
    """Split a comma-separated level filter; None when nothing is left."""
    if not level:
        return None
    levels = [part.strip() for part in level.split(",") if part.strip()]
    return levels or None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_filter(query: LogQuery) -> tuple[str, list]:
    """Translate a LogQuery into a WHERE clause and its parameters.

    Filters that were not given are left out entirely. Timestamp bounds are
    inclusive and compared as plain strings. The search term matches as a
    case-insensitive substring of message, raw or component.
    """
    p = placeholder
    clauses = [f"project_id = {p}"]
    params: list = [query.project_id]

    if query.levels:
        clauses.append(f"level IN ({', '.join([p] * len(query.levels))})")
        params.extend(query.levels)

    if query.start:
        clauses.append(f"timestamp >= {p}")
        params.append(query.start)
    if query.end:
        clauses.append(f"timestamp <= {p}")
        params.append(query.end)

    if query.search:
        op = like_operator()
        pattern = f"%{_escape_like(fold_term(query.search))}%"
        clauses.append(
            "("
            + " OR ".join(
                f"{fold_column(col)} {op} {p} ESCAPE '\\'" for col in _SEARCH_FIELDS
            )
            + ")"
        )
        params.extend([pattern] * len(_SEARCH_FIELDS))

    return " AND ".join(clauses), params


def query_logs(query: LogQuery) -> LogPage:
    """Count the matches, then fetch one newest-first window of them.

    The count and the fetch are separate reads; under concurrent ingestion
    the total may already be stale when the records come back.
    """
    where, params = build_filter(query)
    total = log_store.count_logs(where, params)
    logger.info(
        "Fetching logs for project %s (total: %d, limit: %d, skip: %d)",
        query.project_id, total, query.limit, query.skip,
    )
    records = log_store.find_logs(where, params, query.limit, query.skip)
    logger.info("Returning %d logs", len(records))
    return LogPage(
        records=records,
        total=total,
        has_more=total > query.skip + len(records),
    )
