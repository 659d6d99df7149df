"""
Tests for persistence — the audit ledger.
"""

import json
from pathlib import Path

from delivery_build.core.persistence.audit import AuditEntry, AuditWriter


class TestAuditWriter:
    def test_write_and_read(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / ".state" / "audit.ndjson")
        writer.write(AuditEntry(operation_id="op-1", pipeline="unit", status="ok", tasks_total=6))
        writer.write(AuditEntry(operation_id="op-2", pipeline="syntax", status="failed", failed_task="build"))

        entries = writer.read_all()
        assert [e.operation_id for e in entries] == ["op-1", "op-2"]
        assert entries[1].failed_task == "build"

    def test_default_path_under_repo(self, repo: Path):
        writer = AuditWriter(repo_path=repo)
        assert writer.path == repo / ".state" / "audit.ndjson"

    def test_one_json_object_per_line(self, tmp_path: Path):
        path = tmp_path / "audit.ndjson"
        writer = AuditWriter(path)
        for i in range(3):
            writer.write(AuditEntry(operation_id=f"op-{i}"))
        lines = path.read_text().splitlines()
        assert len(lines) == 3
        assert json.loads(lines[2])["operation_id"] == "op-2"

    def test_skips_corrupt_lines(self, tmp_path: Path):
        path = tmp_path / "audit.ndjson"
        writer = AuditWriter(path)
        writer.write(AuditEntry(operation_id="op-1"))
        with path.open("a") as f:
            f.write("{not json\n\n")
        writer.write(AuditEntry(operation_id="op-2"))
        assert [e.operation_id for e in writer.read_all()] == ["op-1", "op-2"]

    def test_read_missing(self, tmp_path: Path):
        assert AuditWriter(tmp_path / "none.ndjson").read_all() == []

    def test_read_recent(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / "audit.ndjson")
        for i in range(5):
            writer.write(AuditEntry(operation_id=f"op-{i}"))
        assert [e.operation_id for e in writer.read_recent(2)] == ["op-3", "op-4"]
        assert writer.read_recent(0) == []
