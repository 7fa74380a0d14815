"""Log ingestion and query endpoints."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Query

from api.log_query import DEFAULT_LIMIT, LogQuery, parse_levels, query_logs
from api.schemas import BulkIngestRequest, BulkIngestResponse, LogsPageResponse
from api.services import ingest_logs
from models.log_record import LogRecord

router = APIRouter(prefix="/api/logs", tags=["logs"])


@router.post("/bulk", response_model=BulkIngestResponse, status_code=201)
async def bulk_ingest(req: BulkIngestRequest) -> BulkIngestResponse:
    """Store a batch of entries for a project; bad entries and failed batches are skipped."""
    result = await ingest_logs(req.project_id, req.logs)
    return BulkIngestResponse(count=result.inserted)


@router.get("/{project_id}", response_model=LogsPageResponse)
async def list_logs(
    project_id: str,
    level: str | None = Query(None, description="Comma-separated levels, e.g. ERROR,WARN"),
    search: str | None = Query(None, description="Substring of message, raw or component"),
    start: str | None = Query(None, description="Inclusive lower timestamp bound"),
    end: str | None = Query(None, description="Inclusive upper timestamp bound"),
    limit: int = Query(DEFAULT_LIMIT, ge=1),
    skip: int = Query(0, ge=0),
) -> LogsPageResponse:
    query = LogQuery(
        project_id=project_id,
        levels=parse_levels(level),
        start=start or None,
        end=end or None,
        search=search or None,
        limit=limit,
        skip=skip,
    )
    page = await asyncio.to_thread(query_logs, query)
    return LogsPageResponse(
        logs=[LogRecord(**record) for record in page.records],
        total=page.total,
        has_more=page.has_more,
    )
