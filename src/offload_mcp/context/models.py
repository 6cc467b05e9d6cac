"""Typed models for the structural context cache."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass

from offload_mcp.adapters.base import (
    ClassEntity,
    FunctionEntity,
    MethodEntity,
    StructuralEntity,
    StructuralFacts,
    SymbolEntity,
    VariableEntity,
)

EDGE_KINDS = ("import", "extends", "implements", "uses", "calls")


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Return the absolute, normalized string form used for every cache key."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


@dataclass(slots=True, frozen=True)
class FileRecord:
    """Cached structural facts for one file, keyed by normalized path."""

    path: str
    language: str
    mtime_ns: int
    content_hash: str
    content: str
    lines: tuple[str, ...]
    facts: StructuralFacts

    def to_dict(self, include_content: bool = True) -> dict[str, object]:
        """Return a JSON-serializable view of the record."""
        payload: dict[str, object] = {
            "path": self.path,
            "language": self.language,
            "mtime_ns": self.mtime_ns,
            "content_hash": self.content_hash,
            "line_count": len(self.lines),
            "namespace": self.facts.namespace,
            "imports": list(self.facts.imports),
            "exports": list(self.facts.exports),
            "dependencies": list(self.facts.dependencies),
            "classes": [entity_to_dict(item) for item in self.facts.classes],
            "functions": [entity_to_dict(item) for item in self.facts.functions],
            "methods": [entity_to_dict(item) for item in self.facts.methods],
            "variables": [entity_to_dict(item) for item in self.facts.variables],
        }
        if include_content:
            payload["content"] = self.content
            payload["lines"] = list(self.lines)
        return payload


@dataclass(slots=True, frozen=True)
class RelationshipEdge:
    """Directed link produced by exactly one file record."""

    source: str
    target: str
    kind: str
    detail: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in EDGE_KINDS:
            raise ValueError(f"Unsupported edge kind: {self.kind}")

    def to_dict(self) -> dict[str, object]:
        """Serialize with `from`/`to` keys."""
        return {"from": self.source, "to": self.target, "type": self.kind, "detail": self.detail}


@dataclass(slots=True, frozen=True)
class CallSite:
    """Naive call-site match.

    `caller` starts as the originating file path and is rewritten to
    `Class::method` or the function name once attributed.
    """

    path: str
    caller: str
    callee: str
    line: int
    arguments: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize with `from`/`to` keys."""
        return {
            "path": self.path,
            "from": self.caller,
            "to": self.callee,
            "line": self.line,
            "arguments": self.arguments,
        }


@dataclass(slots=True, frozen=True)
class SymbolHit:
    """Symbol table entry returned by substring lookups."""

    key: str
    entity: SymbolEntity

    def to_dict(self) -> dict[str, object]:
        """Serialize as the entity fields plus its key."""
        return {"key": self.key, **entity_to_dict(self.entity)}


@dataclass(slots=True, frozen=True)
class SignatureComparison:
    """Soft result of comparing call sites against a method definition."""

    match: bool
    expected_signature: str | None = None
    definition: MethodEntity | None = None
    calling_signatures: tuple[str, ...] = ()
    issues: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable view."""
        return {
            "match": self.match,
            "expected_signature": self.expected_signature,
            "definition": entity_to_dict(self.definition) if self.definition else None,
            "calling_signatures": list(self.calling_signatures),
            "issues": list(self.issues),
        }


@dataclass(slots=True, frozen=True)
class CacheStats:
    """Cache size snapshot."""

    files_analyzed: int
    total_symbols: int
    total_relationships: int
    approximate_cache_size_bytes: int


def entity_kind(entity: StructuralEntity) -> str:
    """Return the variant tag for a structural entity."""
    if isinstance(entity, ClassEntity):
        return "class"
    if isinstance(entity, FunctionEntity):
        return "function"
    if isinstance(entity, MethodEntity):
        return "method"
    if isinstance(entity, VariableEntity):
        return "variable"
    raise TypeError(f"Unsupported structural entity: {type(entity).__name__}")


def entity_to_dict(entity: StructuralEntity) -> dict[str, object]:
    """Serialize an entity with an explicit `kind` tag."""
    return {"kind": entity_kind(entity), **asdict(entity)}
