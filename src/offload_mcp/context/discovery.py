"""Deterministic source file discovery for project-wide analysis."""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path

from offload_mcp.config import AnalysisConfig


def discover_source_files(root: Path, config: AnalysisConfig) -> list[Path]:
    """Return analyzable files under `root`, sorted by relative path."""
    resolved_root = root.resolve()
    include_extensions = {extension.lower() for extension in config.include_extensions}
    excluded_dir_names = _excluded_dir_names(config.exclude_globs)
    found: list[tuple[str, Path]] = []
    stack: list[Path] = [resolved_root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(resolved_root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dir_names and should_exclude(
                    f"{relative}/", config.exclude_globs
                ):
                    continue
                stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if should_exclude(relative, config.exclude_globs):
                continue
            if full_path.suffix.lower() not in include_extensions:
                continue
            found.append((relative, full_path))
    found.sort(key=lambda item: item[0])
    return [path for _, path in found]


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches configured ignore globs."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def _excluded_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Extract directory-name prunes from **/name/** glob patterns."""
    output: set[str] = set()
    for pattern in exclude_globs:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name:
            continue
        if any(char in name for char in "*?[]{}"):
            continue
        output.add(name)
    return output
