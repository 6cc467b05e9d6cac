"""Structural cache facade: record store plus derived indices and queries."""

from __future__ import annotations

import json
import os

from offload_mcp.adapters.base import MethodEntity, ParameterInfo, SymbolEntity, render_signature
from offload_mcp.adapters.registry import AdapterRegistry
from offload_mcp.adapters.runtime import build_adapter_registry
from offload_mcp.context.calls import CallGraph, call_range
from offload_mcp.context.models import (
    CacheStats,
    CallSite,
    FileRecord,
    RelationshipEdge,
    SignatureComparison,
    SymbolHit,
    normalize_path,
)
from offload_mcp.context.relationships import RelationshipIndex
from offload_mcp.context.store import FileRecordStore
from offload_mcp.context.symbols import SymbolTable

_RECEIVER_PARAMETERS = ("self", "cls")


class FileContextManager:
    """Single-owner structural cache shared by every query in one process.

    Derived indices accumulate across all analyzed files and are rebuilt for a
    path only when its record is reparsed. There is no locking and no in-flight
    de-duplication; concurrent reparses of one path are last-writer-wins.
    """

    def __init__(self, registry: AdapterRegistry | None = None) -> None:
        self._store = FileRecordStore(registry or build_adapter_registry())
        self._relationships = RelationshipIndex()
        self._symbols = SymbolTable()
        self._calls = CallGraph()

    def analyze(self, path: str | os.PathLike[str], force_reparse: bool = False) -> FileRecord:
        """Return the structural record for `path`, reparsing when stale or forced.

        Raises `OSError` when the file cannot be stat'd or read.
        """
        lookup = self._store.get(path, force_reparse=force_reparse)
        if lookup.reparsed:
            record = lookup.record
            self._relationships.replace(record)
            self._symbols.replace(record)
            self._calls.replace(record)
        return lookup.record

    def record_for(self, path: str | os.PathLike[str]) -> FileRecord | None:
        """Return the cached record without touching the filesystem."""
        return self._store.peek(path)

    def records(self) -> list[FileRecord]:
        """Return every cached record."""
        return self._store.records()

    def relationships_of(self, path: str | os.PathLike[str]) -> list[RelationshipEdge]:
        """Return edges produced by one file."""
        return self._relationships.edges_from(normalize_path(path))

    def dependents_of(self, path: str | os.PathLike[str]) -> list[str]:
        """Return files with any edge pointing at `path`."""
        return self._relationships.dependents_of(normalize_path(path))

    def calls_to(self, name: str) -> list[CallSite]:
        """Return call sites whose callee contains `name`."""
        return self._calls.calls_to(name)

    def call_sites_in(self, path: str | os.PathLike[str]) -> list[CallSite]:
        """Return every call site extracted from one file."""
        return self._calls.sites_in(normalize_path(path))

    def calls_from(self, class_name: str | None, name: str) -> list[CallSite]:
        """Return and attribute the call sites inside a method or function body.

        Every analyzed file declaring the target contributes the sites within
        its `[declaration, next declaration)` line range. Matching sites have
        their caller rewritten to `Class::method` or the function name.
        """
        caller = f"{class_name}::{name}" if class_name else name
        attributed: list[CallSite] = []
        for record in self._store.records():
            bounds = call_range(record, class_name, name)
            if bounds is None:
                continue
            lower, upper = bounds
            attributed.extend(self._calls.attribute(record.path, lower, upper, caller))
        return attributed

    def all_symbols(self) -> dict[str, SymbolEntity]:
        """Return a copy of the symbol table."""
        return self._symbols.snapshot()

    def find_symbol(self, name: str) -> list[SymbolHit]:
        """Return symbol entries whose key contains `name`."""
        return self._symbols.find_by_name(name)

    def compare_signatures(
        self, calling_file: str | os.PathLike[str], class_name: str, method_name: str
    ) -> SignatureComparison:
        """Compare argument counts at call sites with a method definition. Never raises."""
        calling_path = normalize_path(calling_file)
        if self._store.peek(calling_path) is None:
            return SignatureComparison(match=False, issues=("Calling file not analyzed",))

        definition = _first_method(self._symbols.find_by_name(f"{class_name}.{method_name}"))
        if definition is None:
            return SignatureComparison(match=False, issues=("Method definition not found",))

        parameters = _declared_parameters(definition.parameters)
        required = sum(1 for param in parameters if not param.optional and not param.variadic)
        total = len(parameters)
        has_rest = any(param.variadic for param in parameters)

        issues: list[str] = []
        calling_signatures: list[str] = []
        seen: set[tuple[int, str]] = set()
        for site in self._calls.sites_in(calling_path):
            if site.arguments is None:
                continue
            if site.callee != method_name and not site.callee.endswith(f".{method_name}"):
                continue
            if (site.line, site.arguments) in seen:
                continue
            seen.add((site.line, site.arguments))
            calling_signatures.append(f"{site.callee}({site.arguments})")
            count = count_arguments(site.arguments)
            if count < required or (not has_rest and count > total):
                issues.append(f"Line {site.line}: expected {required}-{total} arguments, got {count}")

        return SignatureComparison(
            match=not issues,
            expected_signature=render_signature(f"{class_name}.{method_name}", parameters),
            definition=definition,
            calling_signatures=tuple(calling_signatures),
            issues=tuple(issues),
        )

    def evict(self, path: str | os.PathLike[str] | None = None) -> None:
        """Drop one file's record and index entries, or everything when `path` is None."""
        if path is None:
            self._store.evict_all()
            self._relationships.clear()
            self._symbols.clear()
            self._calls.clear()
            return
        normalized = normalize_path(path)
        self._store.evict(normalized)
        self._relationships.evict(normalized)
        self._symbols.evict(normalized)
        self._calls.evict(normalized)

    def stats(self) -> CacheStats:
        """Return counts plus the serialized size of every cached record."""
        size = sum(
            len(json.dumps(record.to_dict()).encode("utf-8")) for record in self._store.records()
        )
        return CacheStats(
            files_analyzed=len(self._store),
            total_symbols=len(self._symbols),
            total_relationships=self._relationships.total(),
            approximate_cache_size_bytes=size,
        )


def count_arguments(arguments: str) -> int:
    """Count top-level comma-separated arguments in a call's argument text."""
    if not arguments.strip():
        return 0
    count = 1
    depth = 0
    quote: str | None = None
    for char in arguments:
        if quote is not None:
            if char == quote:
                quote = None
            continue
        if char in "\"'`":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif char == "," and depth == 0:
            count += 1
    return count


def _first_method(hits: list[SymbolHit]) -> MethodEntity | None:
    for hit in hits:
        if isinstance(hit.entity, MethodEntity):
            return hit.entity
    return None


def _declared_parameters(parameters: tuple[ParameterInfo, ...]) -> tuple[ParameterInfo, ...]:
    if parameters and parameters[0].name in _RECEIVER_PARAMETERS:
        return parameters[1:]
    return parameters
