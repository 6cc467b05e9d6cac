"""Lexical Python adapter using indentation baselines instead of an AST."""

from __future__ import annotations

import re

from offload_mcp.adapters.base import (
    ClassDraft,
    FunctionEntity,
    MethodEntity,
    StructuralFacts,
    VariableEntity,
    parse_parameters,
)

_IMPORT_RE = re.compile(r"^(?:from\s+(.+?)\s+)?import\s+(.+)")
_CLASS_RE = re.compile(r"^(\s*)class\s+(\w+)\s*(?:\((.*?)\))?\s*:")
_DEF_RE = re.compile(r"^(\s*)(async\s+)?def\s+(\w+)\s*\(([^)]*)\)\s*(?:->\s*([^:]+))?:")
_ASSIGN_RE = re.compile(r"^(\s*)([A-Za-z_]\w*)\s*(?::\s*[^=]+)?=(?!=)")
_STATIC_DECORATOR = "@staticmethod"


class PythonLexicalAdapter:
    """Regex-driven Python adapter.

    A `def` is classified as a method when it is indented deeper than the most
    recent `class` line; every other `def` is a function. Only a `class` or
    `def` line at or above the class indentation closes the class, so unindented
    lines inside string literals do not. Multi-line signatures are not recognised.
    """

    name = "python_lexical"

    def supports_language(self, language: str) -> bool:
        """Return True for the python tag."""
        return language == "python"

    def extract(self, path: str, lines: list[str]) -> StructuralFacts:
        """Extract imports, classes, functions, methods and simple bindings."""
        _ = path
        facts = StructuralFacts()
        drafts: list[ClassDraft] = []
        current: ClassDraft | None = None
        class_indent = 0
        pending_static = False

        for index, line in enumerate(lines):
            line_number = index + 1
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            indent = len(line) - len(line.lstrip())

            if line.startswith(("import ", "from ")):
                import_match = _IMPORT_RE.match(line)
                if import_match is not None:
                    facts.imports.append((import_match.group(1) or import_match.group(2)).strip())
                continue

            if stripped.startswith("@"):
                if stripped.startswith(_STATIC_DECORATOR):
                    pending_static = True
                continue

            class_match = _CLASS_RE.match(line)
            if class_match is not None:
                bases = _class_bases(class_match.group(3))
                current = ClassDraft(
                    name=class_match.group(2),
                    line=line_number,
                    superclass=bases[0] if bases else None,
                    interfaces=bases[1:],
                )
                drafts.append(current)
                class_indent = indent
                pending_static = False
                continue

            def_match = _DEF_RE.match(line)
            if def_match is not None:
                def_indent = len(def_match.group(1))
                if current is not None and def_indent <= class_indent:
                    current = None
                name = def_match.group(3)
                parameters = parse_parameters(def_match.group(4))
                return_type = def_match.group(5).strip() if def_match.group(5) else None
                is_async = def_match.group(2) is not None
                if current is not None and def_indent > class_indent:
                    facts.methods.append(
                        MethodEntity(
                            class_name=current.name,
                            name=name,
                            line=line_number,
                            parameters=parameters,
                            visibility="private" if name.startswith("_") else "public",
                            is_static=pending_static,
                            is_async=is_async,
                            return_type=return_type,
                        )
                    )
                    current.method_names.append(name)
                else:
                    facts.functions.append(
                        FunctionEntity(
                            name=name,
                            line=line_number,
                            parameters=parameters,
                            is_async=is_async,
                            return_type=return_type,
                        )
                    )
                pending_static = False
                continue

            pending_static = False
            assign_match = _ASSIGN_RE.match(line)
            if assign_match is None:
                continue
            assign_indent = len(assign_match.group(1))
            name = assign_match.group(2)
            if assign_indent == 0:
                facts.variables.append(VariableEntity(name=name, line=line_number, scope="global"))
            elif current is not None and _is_class_level(lines, index, class_indent, assign_indent):
                current.property_names.append(name)
                facts.variables.append(VariableEntity(name=name, line=line_number, scope="class"))

        facts.classes.extend(draft.freeze() for draft in drafts)
        return facts


def _class_bases(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return ()
    bases: list[str] = []
    for part in raw.split(","):
        name = part.strip()
        if not name or "=" in name:
            continue
        bases.append(name)
    return tuple(bases)


def _is_class_level(lines: list[str], index: int, class_indent: int, indent: int) -> bool:
    # The first indented body line after the class header sets the body indentation.
    for previous in range(index - 1, -1, -1):
        candidate = lines[previous]
        if not candidate.strip() or candidate.strip().startswith("#"):
            continue
        candidate_indent = len(candidate) - len(candidate.lstrip())
        if candidate_indent <= class_indent:
            return indent > class_indent and _CLASS_RE.match(candidate) is not None
        if candidate_indent < indent:
            return False
    return False
