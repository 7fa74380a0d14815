"""Ingestion coordinator: writes batches to the store in bounded parallel waves.

Each wave dispatches up to ``parallelism`` batch writes at once and waits for
all of them to settle before the next wave starts. A batch that fails or
times out counts as zero and is logged; it never stops its siblings or the
waves after it. There is no global transaction.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from api.log_store import BulkWriteError, insert_logs
from pipeline.partitioner import PARALLEL_BATCHES, Batch, group_waves

logger = logging.getLogger(__name__)

BATCH_TIMEOUT_SECONDS = float(os.getenv("INGEST_BATCH_TIMEOUT", "120"))

BatchWriter = Callable[[list[dict[str, Any]]], int]


@dataclass
class BatchResult:
    number: int
    size: int
    inserted: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class IngestionResult:
    batches: list[BatchResult] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def inserted(self) -> int:
        return sum(b.inserted for b in self.batches)

    @property
    def failed_batches(self) -> list[BatchResult]:
        return [b for b in self.batches if b.failed]


async def _write_batch(
    batch: Batch, total: int, write_batch: BatchWriter, timeout: float | None
) -> BatchResult:
    """Write one batch on a worker thread, turning every failure into a result."""
    result = BatchResult(number=batch.number, size=batch.size)
    try:
        reported = await asyncio.wait_for(
            asyncio.to_thread(write_batch, batch.records), timeout
        )
        result.inserted = batch.size if reported is None else reported
        logger.info("Batch %d/%d done (%d logs)", batch.number, total, result.inserted)
    except BulkWriteError as e:
        result.inserted = e.inserted
        result.error = str(e)
        logger.warning(
            "Batch %d/%d partially written: %d/%d logs stored (%s)",
            batch.number, total, e.inserted, batch.size, e.errors[:3],
        )
    except asyncio.TimeoutError:
        # the worker thread cannot be interrupted and may still finish later
        result.error = f"timed out after {timeout}s"
        logger.warning("Batch %d/%d timed out after %ss", batch.number, total, timeout)
    except Exception as e:
        result.error = f"{type(e).__name__}: {e}"
        logger.warning("Batch %d/%d error: %s", batch.number, total, e)
    return result


async def run_ingestion(
    batches: Sequence[Batch],
    write_batch: BatchWriter = insert_logs,
    parallelism: int = PARALLEL_BATCHES,
    timeout: float | None = BATCH_TIMEOUT_SECONDS,
) -> IngestionResult:
    """Write all batches, ``parallelism`` at a time, and tally what was stored.

    ``write_batch`` is a blocking callable taking a list of records and
    returning how many it stored; it runs via ``asyncio.to_thread``. Batches
    are dispatched in partition order but may complete in any order within a
    wave.
    """
    outcome = IngestionResult()
    total = len(batches)
    start = time.time()

    for wave in group_waves(batches, parallelism):
        results = await asyncio.gather(
            *(_write_batch(batch, total, write_batch, timeout) for batch in wave)
        )
        outcome.batches.extend(results)

    outcome.elapsed_ms = (time.time() - start) * 1000
    if outcome.failed_batches:
        logger.warning(
            "%d of %d batches failed or were partial",
            len(outcome.failed_batches), total,
        )
    return outcome
