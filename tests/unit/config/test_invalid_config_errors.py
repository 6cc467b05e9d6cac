from __future__ import annotations

from pathlib import Path

import pytest

from offload_mcp.config import CliOverrides
from offload_mcp.server import create_server


def test_invalid_context_limit_type_raises_value_error(tmp_path: Path) -> None:
    (tmp_path / "offload_mcp.toml").write_text(
        "\n".join(["[context]", 'context_limit = "large"']),
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="context.context_limit"):
        create_server(workspace_root=str(tmp_path))


def test_invalid_section_type_raises_value_error(tmp_path: Path) -> None:
    (tmp_path / "offload_mcp.toml").write_text('context = "not-a-table"\n', encoding="utf-8")

    with pytest.raises(ValueError, match="section 'context'"):
        create_server(workspace_root=str(tmp_path))


def test_safety_margin_outside_unit_interval_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "offload_mcp.toml").write_text(
        "\n".join(["[context]", "safety_margin = 1.5"]),
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="context.safety_margin"):
        create_server(workspace_root=str(tmp_path))


def test_cli_override_above_cap_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="overrides.max_file_bytes"):
        create_server(
            workspace_root=str(tmp_path),
            cli_overrides=CliOverrides(max_file_bytes=64 * 1024 * 1024),
        )
