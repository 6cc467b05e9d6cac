from __future__ import annotations

from pathlib import Path

from offload_mcp.config import (
    DEFAULT_EXCLUDE_GLOBS,
    DEFAULT_INCLUDE_EXTENSIONS,
    load_effective_config,
)


def test_default_analysis_filters_cover_supported_languages(tmp_path: Path) -> None:
    config = load_effective_config(tmp_path)

    assert config.analysis.include_extensions == DEFAULT_INCLUDE_EXTENSIONS
    assert {".js", ".ts", ".php", ".py"} <= set(config.analysis.include_extensions)
    assert "**/node_modules/**" in config.analysis.exclude_globs
    assert "**/.git/**" in config.analysis.exclude_globs
    assert config.analysis.exclude_globs == DEFAULT_EXCLUDE_GLOBS
    assert config.data_dir == tmp_path.resolve() / ".offload_mcp"


def test_workspace_file_replaces_extension_list(tmp_path: Path) -> None:
    (tmp_path / "offload_mcp.toml").write_text(
        "\n".join(["[analysis]", 'include_extensions = [".PY"]']),
        encoding="utf-8",
    )

    config = load_effective_config(tmp_path)

    assert config.analysis.include_extensions == (".py",)
