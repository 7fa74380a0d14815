"""Tests for the bulk-load CLI."""

from __future__ import annotations

import json

from api.log_query import LogQuery, query_logs
from api.project_database import create_project
from conftest import make_logs
from main import cli, read_entries


def test_read_entries_json_array(tmp_path):
    path = tmp_path / "logs.json"
    path.write_text(json.dumps(make_logs(3)))
    assert len(read_entries(str(path))) == 3


def test_read_entries_json_lines(tmp_path):
    path = tmp_path / "logs.jsonl"
    path.write_text("\n".join(json.dumps(e) for e in make_logs(4)) + "\n\n")
    assert len(read_entries(str(path))) == 4


def test_cli_ingests_file(db_path, tmp_path, capsys):
    project_id = create_project(name="batch-load")
    path = tmp_path / "logs.jsonl"
    path.write_text("\n".join(json.dumps(e) for e in make_logs(11)))

    assert cli([project_id, str(path)]) == 0

    assert "Inserted: 11/11 logs" in capsys.readouterr().out
    assert query_logs(LogQuery(project_id=project_id)).total == 11


def test_cli_skips_malformed_entries(db_path, tmp_path, capsys):
    project_id = create_project(name="batch-load")
    entries = make_logs(3)
    entries[1]["message"] = {"nested": 1}
    path = tmp_path / "logs.json"
    path.write_text(json.dumps(entries))

    assert cli([project_id, str(path)]) == 0

    assert "Inserted: 2/3 logs" in capsys.readouterr().out
    assert query_logs(LogQuery(project_id=project_id)).total == 2


def test_cli_missing_file(db_path, capsys):
    assert cli(["p1", "/nonexistent/logs.json"]) == 1
    assert "File not found" in capsys.readouterr().out


def test_cli_unknown_project(db_path, tmp_path, capsys):
    path = tmp_path / "logs.json"
    path.write_text(json.dumps(make_logs(2)))
    assert cli(["ghost", str(path)]) == 1
    assert "not_found" in capsys.readouterr().out


def test_cli_usage(capsys):
    assert cli([]) == 1
    assert "Usage" in capsys.readouterr().out
