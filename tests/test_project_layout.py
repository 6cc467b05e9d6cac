from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/offload_mcp/server.py",
        "src/offload_mcp/config.py",
        "src/offload_mcp/tools/__init__.py",
        "src/offload_mcp/context/__init__.py",
        "src/offload_mcp/chunking/__init__.py",
        "src/offload_mcp/adapters/__init__.py",
        "src/offload_mcp/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
