from __future__ import annotations

import json
from pathlib import Path

from offload_mcp.server import create_server


def test_audit_log_writes_jsonl_schema(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))
    server.handle_payload({"id": "req-100", "method": "server.status", "params": {}})

    audit_path = tmp_path / ".offload_mcp" / "audit.jsonl"
    assert audit_path.exists()

    lines = audit_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) >= 1
    event = json.loads(lines[-1])

    assert set(event.keys()) == {
        "error_code",
        "metadata",
        "ok",
        "request_id",
        "timestamp",
        "tool",
    }
    assert event["request_id"] == "req-100"
    assert event["tool"] == "server.status"
    assert event["ok"] is True
    assert event["error_code"] is None
    assert isinstance(event["timestamp"], str)
    assert isinstance(event["metadata"], dict)


def test_failed_request_records_error_code(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))
    server.handle_payload(
        {"id": "req-101", "method": "context.analyze_file", "params": {"path": "missing.py"}}
    )

    audit_path = tmp_path / ".offload_mcp" / "audit.jsonl"
    event = json.loads(audit_path.read_text(encoding="utf-8").splitlines()[-1])

    assert event["ok"] is False
    assert event["error_code"] == "FILE_ERROR"
    assert event["metadata"] == {"path": "missing.py"}
