"""Keyed structural record cache with mtime-based freshness."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from pathlib import Path

from offload_mcp.adapters.language import detect_language
from offload_mcp.adapters.registry import AdapterRegistry
from offload_mcp.context.models import FileRecord, normalize_path


@dataclass(slots=True, frozen=True)
class StoreLookup:
    """Outcome of one store lookup."""

    record: FileRecord
    reparsed: bool


class FileRecordStore:
    """One structural record per normalized path.

    A cached record is fresh while the file's current `st_mtime_ns` is not newer
    than the stored value. Stat and read failures propagate as `OSError`.
    """

    def __init__(self, registry: AdapterRegistry) -> None:
        self._registry = registry
        self._records: dict[str, FileRecord] = {}

    def get(self, path: str | os.PathLike[str], force_reparse: bool = False) -> StoreLookup:
        """Return a fresh record, reparsing only when forced or stale."""
        normalized = normalize_path(path)
        cached = self._records.get(normalized)
        if not force_reparse and cached is not None:
            if os.stat(normalized).st_mtime_ns <= cached.mtime_ns:
                return StoreLookup(record=cached, reparsed=False)

        record = self._parse(normalized)
        self._records[normalized] = record
        return StoreLookup(record=record, reparsed=True)

    def peek(self, path: str | os.PathLike[str]) -> FileRecord | None:
        """Return the cached record without any filesystem access."""
        return self._records.get(normalize_path(path))

    def records(self) -> list[FileRecord]:
        """Return cached records in first-analysis order."""
        return list(self._records.values())

    def evict(self, path: str | os.PathLike[str]) -> bool:
        """Remove exactly one record; return True when something was removed."""
        return self._records.pop(normalize_path(path), None) is not None

    def evict_all(self) -> None:
        """Remove every record."""
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return normalize_path(path) in self._records

    def _parse(self, normalized: str) -> FileRecord:
        mtime_ns = os.stat(normalized).st_mtime_ns
        content = read_source_text(Path(normalized))
        lines = content.split("\n")
        language = detect_language(normalized)
        facts = self._registry.select(language).extract(normalized, lines)
        return FileRecord(
            path=normalized,
            language=language,
            mtime_ns=mtime_ns,
            content_hash=content_hash(content),
            content=content,
            lines=tuple(lines),
            facts=facts,
        )


def read_source_text(path: Path) -> str:
    """Read file text as UTF-8, replacing undecodable bytes."""
    return path.read_text(encoding="utf-8", errors="replace")


def content_hash(content: str) -> str:
    """Return the MD5 hex digest used to fingerprint record content."""
    return hashlib.md5(content.encode("utf-8"), usedforsecurity=False).hexdigest()
