"""CLI entry point: bulk-load a log file into a LogHub project.

Usage:
    python main.py <project_id> <file.json|file.jsonl>

The file holds either a JSON array of entries or one JSON object per line.
Entries go through the same partitioner and coordinator as POST /api/logs/bulk.
"""

import asyncio
import json
import logging
import sys

from dotenv import load_dotenv


def read_entries(path: str) -> list[dict]:
    """Load entries from a JSON array or JSON-lines file."""
    with open(path) as f:
        text = f.read()
    stripped = text.lstrip()
    if stripped.startswith("["):
        return json.loads(stripped)
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def cli(argv: list[str] | None = None) -> int:
    """Run the loader and return the process exit code."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Imported after load_dotenv so DATABASE_URL and friends are honoured
    from api.errors import LogHubError
    from api.log_store import init_log_tables
    from api.project_database import init_project_tables
    from api.services import ingest_logs

    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print("Usage: python main.py <project_id> <file.json|file.jsonl>")
        return 1
    project_id, log_file = args

    try:
        entries = read_entries(log_file)
    except FileNotFoundError:
        print(f"Error: File not found: {log_file}")
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: {log_file} is not valid JSON: {e}")
        return 1

    if not entries:
        print("No log entries provided.")
        return 1

    init_project_tables()
    init_log_tables()

    logs = [entry for entry in entries if isinstance(entry, dict)]
    if len(logs) < len(entries):
        print(f"Skipping {len(entries) - len(logs)} entries that are not JSON objects")

    print(f"\nIngesting {len(logs)} log entries into project {project_id}...\n")
    try:
        result = asyncio.run(ingest_logs(project_id, logs))
    except LogHubError as e:
        print(f"Error ({e.kind}): {e.detail}")
        return 1

    print(f"Ingestion completed in {result.elapsed_ms / 1000:.1f}s")
    print(f"  Batches: {len(result.batches)} ({len(result.failed_batches)} failed or partial)")
    for batch in result.failed_batches:
        print(f"    #{batch.number}: {batch.inserted}/{batch.size} stored ({batch.error})")
    print(f"  Inserted: {result.inserted}/{len(logs)} logs")
    return 0


if __name__ == "__main__":
    sys.exit(cli())
