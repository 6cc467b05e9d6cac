from __future__ import annotations

import io
import json
from pathlib import Path

from offload_mcp.server import create_server


def test_stdio_server_routes_multiple_requests(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))
    in_stream = io.StringIO(
        "\n".join(
            [
                json.dumps({"id": "req-1", "method": "server.status", "params": {}}),
                "",
                json.dumps(
                    {
                        "id": "req-2",
                        "method": "tools/call",
                        "params": {"name": "context.stats", "arguments": {}},
                    }
                ),
            ]
        )
        + "\n"
    )
    out_stream = io.StringIO()

    server.serve(in_stream=in_stream, out_stream=out_stream)
    lines = [line for line in out_stream.getvalue().splitlines() if line]

    assert len(lines) == 2
    first = json.loads(lines[0])
    second = json.loads(lines[1])

    assert first["request_id"] == "req-1"
    assert first["ok"] is True
    assert "context.analyze_file" in first["result"]["tools"]
    assert first["result"]["adapters"] == [
        "ts_js_lexical",
        "php_lexical",
        "python_lexical",
        "unknown",
    ]

    assert second["request_id"] == "req-2"
    assert second["ok"] is True
    assert second["result"] == {
        "files_analyzed": 0,
        "total_symbols": 0,
        "total_relationships": 0,
        "approximate_cache_size_bytes": 0,
    }
