"""Request-level orchestration for bulk ingestion and cascading project delete."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from api import log_store, project_database
from api.errors import CascadeDeleteFailure, ProjectNotFound, ValidationError
from pipeline.coordinator import BATCH_TIMEOUT_SECONDS, IngestionResult, run_ingestion
from pipeline.partitioner import BATCH_SIZE, PARALLEL_BATCHES, partition_logs

logger = logging.getLogger(__name__)


async def ingest_logs(
    project_id: str,
    logs: Any,
    batch_size: int = BATCH_SIZE,
    parallelism: int = PARALLEL_BATCHES,
    timeout: float | None = BATCH_TIMEOUT_SECONDS,
) -> IngestionResult:
    """Validate, partition and write one ingestion request.

    ``logs`` must be a non-empty list of entry dicts; anything else is
    rejected before the store is touched. Failed batches reduce the result's
    ``inserted`` count but never abort the request.
    """
    if not isinstance(logs, list) or not logs:
        raise ValidationError("No logs provided")
    if not isinstance(project_id, str) or not project_id.strip():
        raise ValidationError("projectId is required")

    project = await asyncio.to_thread(project_database.get_project, project_id)
    if project is None:
        raise ProjectNotFound(f"Project {project_id} not found")

    logger.info("Received %d logs for project %s", len(logs), project_id)
    batches = partition_logs(logs, project_id, batch_size)
    result = await run_ingestion(
        batches, log_store.insert_logs, parallelism=parallelism, timeout=timeout
    )
    logger.info(
        "Successfully inserted %d logs for project %s in %.0fms",
        result.inserted, project_id, result.elapsed_ms,
    )
    return result


async def delete_project_cascade(project_id: str) -> int:
    """Delete a project's records, then the project itself.

    The two legs are separate store operations with no shared transaction.
    If the second leg fails the records stay deleted. Returns the number of
    records removed.
    """
    logger.info("Deleting project %s and its logs...", project_id)
    try:
        deleted = await asyncio.to_thread(log_store.delete_project_logs, project_id)
    except Exception as e:
        logger.exception("Deleting logs of project %s failed", project_id)
        raise CascadeDeleteFailure(f"Failed to delete logs: {e}", leg="logs") from e

    try:
        existed = await asyncio.to_thread(
            project_database.delete_project_record, project_id
        )
    except Exception as e:
        logger.exception(
            "Deleting project %s failed after removing %d logs", project_id, deleted
        )
        raise CascadeDeleteFailure(
            f"Deleted {deleted} logs but failed to delete project: {e}", leg="project"
        ) from e

    if not existed:
        logger.warning("Project %s did not exist; removed %d orphaned logs", project_id, deleted)
    logger.info("Deleted project and %d logs", deleted)
    return deleted
