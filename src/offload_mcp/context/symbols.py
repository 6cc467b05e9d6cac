"""Global symbol table keyed by path-qualified names."""

from __future__ import annotations

from offload_mcp.adapters.base import SymbolEntity
from offload_mcp.context.models import FileRecord, SymbolHit


def symbol_entries(record: FileRecord) -> list[tuple[str, SymbolEntity]]:
    """Return `(key, entity)` pairs for every class, function and method in a record."""
    entries: list[tuple[str, SymbolEntity]] = []
    for entity in record.facts.classes:
        entries.append((f"{record.path}:class:{entity.name}", entity))
    for function in record.facts.functions:
        entries.append((f"{record.path}:function:{function.name}", function))
    for method in record.facts.methods:
        entries.append((f"{record.path}:{method.class_name}.{method.name}", method))
    return entries


class SymbolTable:
    """Maps `path:class:Name`, `path:function:Name` and `path:Class.method` keys to entities."""

    def __init__(self) -> None:
        self._entries: dict[str, SymbolEntity] = {}
        self._keys_by_path: dict[str, tuple[str, ...]] = {}

    def replace(self, record: FileRecord) -> None:
        """Replace exactly the keys previously contributed by this record's path."""
        self.evict(record.path)
        entries = symbol_entries(record)
        for key, entity in entries:
            self._entries[key] = entity
        self._keys_by_path[record.path] = tuple(key for key, _ in entries)

    def evict(self, path: str) -> None:
        """Remove every key contributed by one path."""
        for key in self._keys_by_path.pop(path, ()):
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove every key."""
        self._entries.clear()
        self._keys_by_path.clear()

    def snapshot(self) -> dict[str, SymbolEntity]:
        """Return a copy of the full table."""
        return dict(self._entries)

    def find_by_name(self, substring: str) -> list[SymbolHit]:
        """Return every entry whose key contains `substring`.

        This is substring matching, so `find_by_name("run")` also returns
        `runAll` and `prune`; callers disambiguate.
        """
        return [
            SymbolHit(key=key, entity=entity)
            for key, entity in self._entries.items()
            if substring in key
        ]

    def keys_for(self, path: str) -> tuple[str, ...]:
        """Return the keys contributed by one path."""
        return self._keys_by_path.get(path, ())

    def __len__(self) -> int:
        return len(self._entries)
