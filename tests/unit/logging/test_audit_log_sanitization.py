from __future__ import annotations

import json
from pathlib import Path

from offload_mcp.logging import sanitize_arguments
from offload_mcp.server import create_server


def test_audit_log_reduces_payload_text_to_presence_and_length(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))
    secret_payload = "API_KEY=top-secret"
    server.handle_payload(
        {
            "id": "req-200",
            "method": "prompt.chunk",
            "params": {"payload": secret_payload, "max_chunk_tokens": 10},
        }
    )

    audit_path = tmp_path / ".offload_mcp" / "audit.jsonl"
    entries = [json.loads(line) for line in audit_path.read_text(encoding="utf-8").splitlines()]
    event = entries[-1]

    metadata = event["metadata"]
    assert metadata["payload_present"] is True
    assert metadata["payload_length"] == len(secret_payload)
    assert metadata["max_chunk_tokens"] == 10
    assert "payload" not in metadata
    assert secret_payload not in json.dumps(event, sort_keys=True)


def test_sanitize_keeps_paths_and_flags_but_hides_unknown_text() -> None:
    metadata = sanitize_arguments(
        {
            "path": "src/app.py",
            "force_reparse": True,
            "custom_note": "token=abc123",
            "files": ["a.py", "b.py"],
        }
    )

    assert metadata == {
        "custom_note_length": len("token=abc123"),
        "custom_note_present": True,
        "files_length": 2,
        "files_type": "list",
        "force_reparse": True,
        "path": "src/app.py",
    }
