from __future__ import annotations

from pathlib import Path

from offload_mcp.chunking import SECTION_DELIMITER
from offload_mcp.server import create_server


def test_chunk_tool_uses_explicit_budget(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))
    payload = SECTION_DELIMITER.join(["a" * 1000, "b" * 1000, "c" * 1000])

    response = server.handle_payload(
        {
            "id": "req-chunk",
            "method": "prompt.chunk",
            "params": {"payload": payload, "max_chunk_tokens": 600},
        }
    )

    assert response["ok"] is True
    assert response["result"]["chunk_count"] == 2
    assert all(len(chunk) <= 2400 for chunk in response["result"]["chunks"])


def test_chunk_tool_defaults_to_window_budget(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = server.handle_payload(
        {"id": "req-chunk-default", "method": "prompt.chunk", "params": {"payload": "tiny"}}
    )

    assert response["result"] == {"max_chunk_tokens": 2293, "chunk_count": 1, "chunks": ["tiny"]}


def test_chunk_tool_rejects_non_positive_budget(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = server.handle_payload(
        {
            "id": "req-chunk-bad",
            "method": "prompt.chunk",
            "params": {"payload": "tiny", "max_chunk_tokens": 0},
        }
    )

    assert response["error"]["code"] == "INVALID_PARAMS"


def test_build_conversation_with_explicit_chunks(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = server.handle_payload(
        {
            "id": "req-conv",
            "method": "prompt.build_conversation",
            "params": {
                "system_and_context": "You review code.",
                "output_instructions": "Summarize.",
                "chunks": ["first", "second"],
            },
        }
    )

    result = response["result"]
    assert result["chunk_count"] == 2
    assert result["context_message"] == {"role": "system", "content": "You review code."}
    assert result["data_messages"][1]["content"] == "Data chunk 2/2:\n\nsecond"
    assert result["instruction_message"]["content"].endswith(
        "Analyze all 2 data chunks provided above."
    )


def test_build_conversation_plans_from_data_payload(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = server.handle_payload(
        {
            "id": "req-plan",
            "method": "prompt.build_conversation",
            "params": {
                "system_and_context": "ctx",
                "data_payload": "short data",
                "output_instructions": "do it",
            },
        }
    )

    result = response["result"]
    assert result["chunk_count"] == 1
    assert result["data_messages"] == [
        {"role": "user", "content": "Data to analyze:\n\nshort data"}
    ]
    assert result["estimated_data_tokens"] > 0
