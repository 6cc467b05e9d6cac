"""Multi-file analyses composed from the structural cache queries."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from offload_mcp.adapters.base import ClassEntity, FunctionEntity, MethodEntity
from offload_mcp.config import AnalysisConfig
from offload_mcp.context.discovery import discover_source_files
from offload_mcp.context.manager import FileContextManager
from offload_mcp.context.models import CacheStats
from offload_mcp.context.store import read_source_text


@dataclass(slots=True, frozen=True)
class IntegrationFinding:
    """One integration problem located in an analyzed file."""

    path: str
    line: int
    kind: str
    subject: str
    reason: str

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable view."""
        return {
            "path": self.path,
            "line": self.line,
            "kind": self.kind,
            "subject": self.subject,
            "reason": self.reason,
        }


@dataclass(slots=True, frozen=True)
class IntegrationReport:
    """Findings from comparing a set of files against each other."""

    files_analyzed: int
    missing_calls: tuple[IntegrationFinding, ...] = ()
    missing_imports: tuple[IntegrationFinding, ...] = ()


@dataclass(slots=True, frozen=True)
class ExecutionTrace:
    """Indented call tree rooted at one entry point."""

    entry_point: str
    depth: int
    path: tuple[str, ...]
    visited_nodes: int


@dataclass(slots=True, frozen=True)
class ProjectSummary:
    """Structural counts for one discovered project tree."""

    root: str
    files_analyzed: int
    total_classes: int
    total_functions: int
    total_methods: int
    stats: CacheStats
    skipped: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class PatternMatch:
    """One line matching a search pattern, with surrounding lines."""

    path: str
    line: int
    pattern: str
    matched_line: str
    context: str

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable view."""
        return {
            "path": self.path,
            "line": self.line,
            "pattern": self.pattern,
            "matched_line": self.matched_line,
            "context": self.context,
        }


@dataclass(slots=True, frozen=True)
class PatternSearchReport:
    """Matches for a set of patterns across discovered source files."""

    files_searched: int
    matches: tuple[PatternMatch, ...] = ()
    skipped: tuple[str, ...] = ()


def compare_integration(
    manager: FileContextManager,
    files: Iterable[str | os.PathLike[str]],
    focus: Iterable[str] = (),
) -> IntegrationReport:
    """Analyze `files` and report unresolved method calls and missing parent imports.

    A dotted call `receiver.method(...)` is unresolved when no symbol key ends
    with `.method`. Parent imports are only checked when `focus` contains
    `namespace_dependencies`.
    """
    records = [manager.analyze(path) for path in files]
    focus_set = set(focus)

    known_members = {
        entity.name
        for entity in manager.all_symbols().values()
        if isinstance(entity, MethodEntity | FunctionEntity)
    }

    missing_calls: list[IntegrationFinding] = []
    for record in records:
        for site in manager.call_sites_in(record.path):
            if "." not in site.callee:
                continue
            member = site.callee.rsplit(".", 1)[1]
            if member in known_members:
                continue
            missing_calls.append(
                IntegrationFinding(
                    path=record.path,
                    line=site.line,
                    kind="missing_call",
                    subject=site.callee,
                    reason=f"Called method {site.callee} does not exist",
                )
            )

    missing_imports: list[IntegrationFinding] = []
    if "namespace_dependencies" in focus_set:
        for record in records:
            for entity in record.facts.classes:
                if entity.superclass is None:
                    continue
                if any(entity.superclass in source for source in record.facts.imports):
                    continue
                missing_imports.append(
                    IntegrationFinding(
                        path=record.path,
                        line=entity.line,
                        kind="missing_import",
                        subject=entity.superclass,
                        reason=f"Missing import for parent class {entity.superclass}",
                    )
                )

    return IntegrationReport(
        files_analyzed=len(records),
        missing_calls=tuple(missing_calls),
        missing_imports=tuple(missing_imports),
    )


def trace_execution_path(
    manager: FileContextManager, entry_point: str, depth: int = 5
) -> ExecutionTrace:
    """Walk `calls_from` recursively from `Class::method` or a function name.

    Each node is visited once; callees that resolve to no known declaration
    appear as leaves.
    """
    path_lines: list[str] = []
    visited: set[str] = set()

    def trace(node: str, remaining: int) -> None:
        if remaining <= 0 or node in visited:
            return
        visited.add(node)
        path_lines.append(f"{'  ' * (depth - remaining)}{node}")
        class_name, _, name = node.rpartition("::")
        for site in manager.calls_from(class_name or None, name):
            trace(_resolve_callee(manager, site.callee), remaining - 1)

    trace(entry_point, depth)
    return ExecutionTrace(
        entry_point=entry_point,
        depth=depth,
        path=tuple(path_lines),
        visited_nodes=len(visited),
    )


def _resolve_callee(manager: FileContextManager, callee: str) -> str:
    member = callee.rsplit(".", 1)[-1]
    for hit in manager.find_symbol(member):
        entity = hit.entity
        if isinstance(entity, MethodEntity) and entity.name == member:
            return f"{entity.class_name}::{entity.name}"
        if isinstance(entity, FunctionEntity) and entity.name == member:
            return entity.name
    return callee


def analyze_project_structure(
    manager: FileContextManager, root: Path, config: AnalysisConfig
) -> ProjectSummary:
    """Discover and analyze every source file under `root`.

    Files larger than `config.max_file_bytes` are skipped and listed.
    """
    analyzed = 0
    skipped: list[str] = []
    for path in discover_source_files(root, config):
        if path.stat().st_size > config.max_file_bytes:
            skipped.append(path.as_posix())
            continue
        manager.analyze(path)
        analyzed += 1

    classes = functions = methods = 0
    for entity in manager.all_symbols().values():
        if isinstance(entity, ClassEntity):
            classes += 1
        elif isinstance(entity, FunctionEntity):
            functions += 1
        elif isinstance(entity, MethodEntity):
            methods += 1

    return ProjectSummary(
        root=root.resolve().as_posix(),
        files_analyzed=analyzed,
        total_classes=classes,
        total_functions=functions,
        total_methods=methods,
        stats=manager.stats(),
        skipped=tuple(skipped),
    )


def find_pattern_usage(
    root: Path,
    patterns: Iterable[str],
    include_context: int = 3,
    config: AnalysisConfig | None = None,
) -> PatternSearchReport:
    """Search discovered source files line by line for each regular expression.

    Matches are grouped by file, then by pattern, then by line. `context` holds up
    to `include_context` lines on each side of the match. Invalid patterns raise
    `re.error` before any file is read.
    """
    active = config or AnalysisConfig()
    compiled = [(pattern, re.compile(pattern)) for pattern in patterns]
    radius = max(0, include_context)
    matches: list[PatternMatch] = []
    skipped: list[str] = []
    searched = 0
    for path in discover_source_files(root, active):
        if path.stat().st_size > active.max_file_bytes:
            skipped.append(path.as_posix())
            continue
        searched += 1
        lines = read_source_text(path).split("\n")
        for pattern, regex in compiled:
            for index, line in enumerate(lines):
                if regex.search(line) is None:
                    continue
                window = lines[max(0, index - radius) : index + radius + 1]
                matches.append(
                    PatternMatch(
                        path=path.as_posix(),
                        line=index + 1,
                        pattern=pattern,
                        matched_line=line,
                        context="\n".join(window),
                    )
                )
    return PatternSearchReport(
        files_searched=searched, matches=tuple(matches), skipped=tuple(skipped)
    )
