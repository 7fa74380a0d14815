"""Batch partitioner: splits an ingestion request into fixed-size batches."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

BATCH_SIZE = int(os.getenv("INGEST_BATCH_SIZE", "5000"))
PARALLEL_BATCHES = int(os.getenv("INGEST_PARALLEL_BATCHES", "4"))


@dataclass
class Batch:
    """One store write: a slice of the request, stamped with its project."""

    number: int  # 1-based position in the request
    records: list[dict[str, Any]] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.records)


def partition_logs(
    logs: Sequence[dict[str, Any]],
    project_id: str,
    batch_size: int = BATCH_SIZE,
) -> list[Batch]:
    """Split ``logs`` into batches of ``batch_size``, last one possibly smaller.

    Each record is a shallow copy of the input entry with ``project_id`` set,
    so the caller's entries are left untouched. Order is preserved.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    batches: list[Batch] = []
    for start in range(0, len(logs), batch_size):
        chunk = logs[start : start + batch_size]
        batches.append(
            Batch(
                number=start // batch_size + 1,
                records=[{**entry, "project_id": project_id} for entry in chunk],
            )
        )
    return batches


def group_waves(
    batches: Sequence[Batch], ceiling: int = PARALLEL_BATCHES
) -> Iterator[list[Batch]]:
    """Yield consecutive groups of at most ``ceiling`` batches."""
    if ceiling < 1:
        raise ValueError(f"ceiling must be positive, got {ceiling}")
    for start in range(0, len(batches), ceiling):
        yield list(batches[start : start + ceiling])
