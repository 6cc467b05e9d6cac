"""Naive call-site extraction and call-range attribution."""

from __future__ import annotations

import re
from dataclasses import replace

from offload_mcp.context.models import CallSite, FileRecord

_METHOD_CALL_RE = re.compile(r"(\w+)\.(\w+)\s*\(")
_FUNCTION_CALL_RE = re.compile(r"\b(\w+)\s*\(")
_DECLARATION_PREFIX_RE = re.compile(r"\b(?:def|function|fn|func|class)\s*\*?\s*$")

CONTROL_FLOW_KEYWORDS = frozenset({"if", "for", "while", "switch", "catch"})


def extract_call_sites(path: str, lines: list[str] | tuple[str, ...]) -> list[CallSite]:
    """Return every method-style and bare call match, line by line.

    Matches are not deduplicated: `obj.run(` yields both `obj.run` and `run`.
    Declaration names (`def run(`, `function run(`) are not call sites.
    """
    sites: list[CallSite] = []
    for index, line in enumerate(lines):
        line_number = index + 1
        for match in _METHOD_CALL_RE.finditer(line):
            sites.append(
                CallSite(
                    path=path,
                    caller=path,
                    callee=f"{match.group(1)}.{match.group(2)}",
                    line=line_number,
                    arguments=_argument_text(line, match.end()),
                )
            )
        for match in _FUNCTION_CALL_RE.finditer(line):
            name = match.group(1)
            if name in CONTROL_FLOW_KEYWORDS:
                continue
            if _DECLARATION_PREFIX_RE.search(line, 0, match.start()):
                continue
            sites.append(
                CallSite(
                    path=path,
                    caller=path,
                    callee=name,
                    line=line_number,
                    arguments=_argument_text(line, match.end()),
                )
            )
    return sites


def _argument_text(line: str, open_end: int) -> str | None:
    # `open_end` points just past the opening parenthesis.
    depth = 1
    for position in range(open_end, len(line)):
        char = line[position]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return line[open_end:position].strip()
    return None


def call_range(record: FileRecord, class_name: str | None, name: str) -> tuple[int, int | None] | None:
    """Return `[lower, upper)` line bounds for a method or function body.

    The upper bound is the nearest later class, function or method declaration
    in the same file; `None` means the range runs to end of file. Returns None
    when the entity is not declared in this record.
    """
    lower: int | None = None
    if class_name is not None:
        for method in record.facts.methods:
            if method.class_name == class_name and method.name == name:
                lower = method.line
                break
    else:
        for function in record.facts.functions:
            if function.name == name:
                lower = function.line
                break
    if lower is None:
        return None

    declaration_lines = [item.line for item in record.facts.methods]
    declaration_lines.extend(item.line for item in record.facts.functions)
    declaration_lines.extend(item.line for item in record.facts.classes)
    later = [line for line in declaration_lines if line > lower]
    return lower, (min(later) if later else None)


class CallGraph:
    """Per-file call-site lists."""

    def __init__(self) -> None:
        self._sites: dict[str, list[CallSite]] = {}

    def replace(self, record: FileRecord) -> list[CallSite]:
        """Re-extract the record's call sites, discarding any prior attribution."""
        sites = extract_call_sites(record.path, record.lines)
        self._sites[record.path] = sites
        return list(sites)

    def sites_in(self, path: str) -> list[CallSite]:
        """Return a copy of one file's call sites."""
        return list(self._sites.get(path, ()))

    def paths(self) -> list[str]:
        """Return every path with a call-site list."""
        return list(self._sites)

    def calls_to(self, substring: str) -> list[CallSite]:
        """Return call sites whose callee contains `substring`, across all files."""
        return [
            site
            for sites in self._sites.values()
            for site in sites
            if substring in site.callee
        ]

    def attribute(self, path: str, lower: int, upper: int | None, caller: str) -> list[CallSite]:
        """Rewrite `caller` on every site of `path` within `[lower, upper)` and return them."""
        sites = self._sites.get(path)
        if not sites:
            return []
        attributed: list[CallSite] = []
        for position, site in enumerate(sites):
            if site.line < lower or (upper is not None and site.line >= upper):
                continue
            updated = replace(site, caller=caller)
            sites[position] = updated
            attributed.append(updated)
        return attributed

    def evict(self, path: str) -> None:
        """Drop one file's call sites."""
        self._sites.pop(path, None)

    def clear(self) -> None:
        """Drop every call site."""
        self._sites.clear()

    def total(self) -> int:
        """Return the number of call sites across all files."""
        return sum(len(sites) for sites in self._sites.values())
