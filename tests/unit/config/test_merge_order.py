from __future__ import annotations

from pathlib import Path

from offload_mcp.config import CliOverrides
from offload_mcp.server import create_server


def test_merge_order_defaults_then_workspace_then_cli(tmp_path: Path) -> None:
    (tmp_path / "offload_mcp.toml").write_text(
        "\n".join(
            [
                "[context]",
                "context_limit = 8192",
                "safety_margin = 0.5",
                "",
                "[analysis]",
                "max_file_bytes = 2048",
            ]
        ),
        encoding="utf-8",
    )
    overrides = CliOverrides(context_limit=16384, max_file_bytes=4096)
    server = create_server(workspace_root=str(tmp_path), cli_overrides=overrides)

    response = server.handle_payload({"id": "req-merge", "method": "server.status", "params": {}})
    effective = response["result"]["effective_config"]

    assert effective["context"]["context_limit"] == 16384
    assert effective["context"]["safety_margin"] == 0.5
    assert effective["context"]["estimation_factor"] == 1.2
    assert effective["analysis"]["max_file_bytes"] == 4096


def test_data_dir_override_has_highest_precedence(tmp_path: Path) -> None:
    custom_data_dir = tmp_path / ".custom_data"
    server = create_server(
        workspace_root=str(tmp_path),
        cli_overrides=CliOverrides(data_dir=custom_data_dir),
    )

    response = server.handle_payload({"id": "req-data-dir", "method": "server.status", "params": {}})
    effective = response["result"]["effective_config"]
    assert effective["data_dir"] == str(custom_data_dir.resolve())


def test_status_reports_window_derived_from_context_config(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = server.handle_payload({"id": "req-window", "method": "server.status", "params": {}})
    window = response["result"]["context_window"]

    assert window == {"context_limit": 4096, "effective_limit": 3276, "chunk_budget_tokens": 2293}
