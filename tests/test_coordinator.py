"""Tests for the wave-based ingestion coordinator."""

from __future__ import annotations

import asyncio
import threading
import time

from api.log_store import BulkWriteError
from pipeline.coordinator import run_ingestion
from pipeline.partitioner import partition_logs


def _batches(n: int, size: int):
    return partition_logs([{"message": str(i)} for i in range(n)], "p1", batch_size=size)


def test_all_batches_succeed():
    result = asyncio.run(run_ingestion(_batches(12_000, 5000), lambda recs: len(recs)))

    assert result.inserted == 12_000
    assert len(result.batches) == 3
    assert result.failed_batches == []


def test_failed_batch_contributes_zero_and_others_continue():
    calls = []

    def write(records):
        calls.append(records[0]["message"])
        if records[0]["message"] == "5000":
            raise RuntimeError("store rejected batch")
        return len(records)

    result = asyncio.run(run_ingestion(_batches(12_000, 5000), write))

    assert result.inserted == 7000
    assert sorted(calls) == ["0", "10000", "5000"]
    failed = result.failed_batches
    assert [b.number for b in failed] == [2]
    assert "store rejected batch" in failed[0].error


def test_failures_in_early_wave_do_not_stop_later_waves():
    batches = _batches(20, 2)  # 10 batches, 3 waves at ceiling 4
    seen = []

    def write(records):
        seen.append(records[0]["message"])
        if int(records[0]["message"]) < 8:
            raise RuntimeError("first wave down")
        return len(records)

    result = asyncio.run(run_ingestion(batches, write, parallelism=4))

    assert len(seen) == 10
    assert result.inserted == 20 - 8


def test_partial_batch_counts_reported_inserts():
    def write(records):
        if records[0]["message"] == "3":
            raise BulkWriteError(inserted=2, errors=["row 2: bad"])
        return len(records)

    result = asyncio.run(run_ingestion(_batches(9, 3), write))

    assert result.inserted == 3 + 2 + 3
    partial = result.failed_batches[0]
    assert partial.number == 2
    assert partial.inserted == 2


def test_writer_returning_none_counts_whole_batch():
    result = asyncio.run(run_ingestion(_batches(5, 2), lambda recs: None))
    assert result.inserted == 5


def test_hung_batch_times_out_as_failed():
    def write(records):
        if records[0]["message"] == "0":
            time.sleep(0.5)
        return len(records)

    result = asyncio.run(run_ingestion(_batches(4, 2), write, timeout=0.05))

    assert result.inserted == 2
    assert result.failed_batches[0].number == 1
    assert "timed out" in result.failed_batches[0].error


def test_concurrency_never_exceeds_ceiling():
    lock = threading.Lock()
    active = 0
    peak = 0

    def write(records):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1
        return len(records)

    result = asyncio.run(run_ingestion(_batches(30, 3), write, parallelism=3))

    assert result.inserted == 30
    assert 1 <= peak <= 3


def test_next_wave_waits_for_whole_previous_wave():
    events = []
    lock = threading.Lock()

    def write(records):
        first = int(records[0]["message"])
        with lock:
            events.append(("start", first))
        # the first batch of each wave is the slowest
        time.sleep(0.05 if first in (0, 4) else 0.0)
        with lock:
            events.append(("end", first))
        return len(records)

    asyncio.run(run_ingestion(_batches(6, 1), write, parallelism=4))

    last_end_wave_one = max(i for i, e in enumerate(events) if e[0] == "end" and e[1] < 4)
    first_start_wave_two = min(i for i, e in enumerate(events) if e[0] == "start" and e[1] >= 4)
    assert last_end_wave_one < first_start_wave_two
