"""Lexical TypeScript/JavaScript adapter with line-anchored structural extraction."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field

from offload_mcp.adapters.base import (
    ClassEntity,
    FunctionEntity,
    MethodEntity,
    StructuralFacts,
    VariableEntity,
    parse_parameters,
    split_names,
)

_IDENT = r"[A-Za-z_$][A-Za-z0-9_$]*"

_IMPORT_RE = re.compile(r"""^import\s+(.+?)\s+from\s+['"](.+?)['"]""")
_EXPORT_RE = re.compile(
    rf"export\s+(?:default\s+)?(?:async\s+)?(?:class|function|const|let|var)\s+({_IDENT})"
)
_CLASS_RE = re.compile(
    rf"^(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+({_IDENT})"
    rf"(?:\s+extends\s+({_IDENT}(?:\.{_IDENT})*))?"
    r"(?:\s+implements\s+([^{]+))?"
)
_FUNCTION_RE = re.compile(
    rf"^(?:export\s+)?(?:default\s+)?(async\s+)?function\s*\*?\s*({_IDENT})\s*\(([^)]*)\)"
    r"(?:\s*:\s*([^{]+))?"
)
_ARROW_RE = re.compile(
    rf"^(?:export\s+)?const\s+({_IDENT})\s*=\s*(async\s+)?\(([^)]*)\)\s*(?::\s*[^=]+)?=>"
)
_BINDING_RE = re.compile(rf"^(?:export\s+)?(?:const|let|var)\s+({_IDENT})\s*=")

_MEMBER_METHOD_RE = re.compile(
    r"^(?:(public|private|protected)\s+)?(?:(static)\s+)?"
    r"(?:(?:readonly|override|abstract)\s+)*(?:(async)\s+)?(?:[gs]et\s+)?\*?"
    rf"({_IDENT})\s*\(([^)]*)\)(?:\s*:\s*([^{{;]+))?"
)
_MEMBER_ARROW_RE = re.compile(
    r"^(?:(public|private|protected)\s+)?(?:(static)\s+)?(?:readonly\s+)?"
    rf"({_IDENT})\s*=\s*(async\s+)?\(([^)]*)\)\s*(?::\s*[^=]+)?=>"
)
_MEMBER_PROPERTY_RE = re.compile(
    r"^(?:(?:public|private|protected)\s+)?(?:static\s+)?(?:readonly\s+)?"
    rf"({_IDENT})\s*[?!]?\s*[:=]"
)
_SKIP_MEMBER_NAMES = {"if", "for", "while", "switch", "catch", "function", "return"}


@dataclass(slots=True)
class _ClassBody:
    methods: list[MethodEntity] = field(default_factory=list)
    method_names: list[str] = field(default_factory=list)
    property_names: list[str] = field(default_factory=list)
    properties: list[VariableEntity] = field(default_factory=list)


class JavaScriptLexicalAdapter:
    """Line-anchored lexical adapter for TypeScript and JavaScript source files."""

    name = "ts_js_lexical"
    _languages = ("javascript", "typescript")

    def supports_language(self, language: str) -> bool:
        """Return True for javascript and typescript tags."""
        return language in self._languages

    def extract(self, path: str, lines: list[str]) -> StructuralFacts:
        """Extract imports, exports, classes, functions and class members."""
        facts = StructuralFacts()
        for index, line in enumerate(lines):
            if not line:
                continue
            line_number = index + 1

            import_match = _IMPORT_RE.match(line)
            if import_match is not None:
                source = import_match.group(2)
                facts.imports.append(source)
                facts.dependencies.append(resolve_import_path(source, path))

            if "export " in line:
                export_match = _EXPORT_RE.search(line)
                if export_match is not None:
                    facts.exports.append(export_match.group(1))

            class_match = _CLASS_RE.match(line)
            if class_match is not None:
                class_name = class_match.group(1)
                body = _scan_class_body(lines, index, class_name)
                facts.classes.append(
                    ClassEntity(
                        name=class_name,
                        line=line_number,
                        superclass=class_match.group(2),
                        interfaces=split_names(class_match.group(3)),
                        method_names=tuple(body.method_names),
                        property_names=tuple(body.property_names),
                    )
                )
                facts.methods.extend(body.methods)
                facts.variables.extend(body.properties)
                continue

            function_match = _FUNCTION_RE.match(line)
            if function_match is not None:
                return_type = function_match.group(4)
                facts.functions.append(
                    FunctionEntity(
                        name=function_match.group(2),
                        line=line_number,
                        parameters=parse_parameters(function_match.group(3)),
                        is_async=function_match.group(1) is not None,
                        return_type=return_type.strip() if return_type else None,
                    )
                )
                continue

            arrow_match = _ARROW_RE.match(line)
            if arrow_match is not None:
                facts.functions.append(
                    FunctionEntity(
                        name=arrow_match.group(1),
                        line=line_number,
                        parameters=parse_parameters(arrow_match.group(3)),
                        is_async=arrow_match.group(2) is not None,
                    )
                )
                continue

            binding_match = _BINDING_RE.match(line)
            if binding_match is not None:
                facts.variables.append(
                    VariableEntity(name=binding_match.group(1), line=line_number, scope="global")
                )
        return facts


def resolve_import_path(source: str, importer: str) -> str:
    """Resolve relative specifiers against the importer's directory."""
    if source.startswith("."):
        return os.path.normpath(os.path.join(os.path.dirname(importer), source))
    return source


def _scan_class_body(lines: list[str], start_index: int, class_name: str) -> _ClassBody:
    # Braces inside strings and comments are counted too.
    body = _ClassBody()
    depth = 0
    entered = False
    for index in range(start_index, len(lines)):
        line = lines[index]
        depth_before = depth
        for char in line:
            if char == "{":
                depth += 1
                entered = True
            elif char == "}":
                depth -= 1
        if index > start_index and depth_before == 1:
            _scan_member_line(body, class_name, line.strip(), index + 1)
        if entered and depth <= 0:
            break
    return body


def _scan_member_line(body: _ClassBody, class_name: str, stripped: str, line_number: int) -> None:
    if not stripped or stripped.startswith(("//", "/*", "*")):
        return

    arrow_match = _MEMBER_ARROW_RE.match(stripped)
    if arrow_match is not None:
        body.method_names.append(arrow_match.group(3))
        body.methods.append(
            MethodEntity(
                class_name=class_name,
                name=arrow_match.group(3),
                line=line_number,
                parameters=parse_parameters(arrow_match.group(5)),
                visibility=arrow_match.group(1) or "public",
                is_static=arrow_match.group(2) is not None,
                is_async=arrow_match.group(4) is not None,
            )
        )
        return

    method_match = _MEMBER_METHOD_RE.match(stripped)
    if method_match is not None and "function" not in stripped:
        name = method_match.group(4)
        if name in _SKIP_MEMBER_NAMES:
            return
        return_type = method_match.group(6)
        body.method_names.append(name)
        body.methods.append(
            MethodEntity(
                class_name=class_name,
                name=name,
                line=line_number,
                parameters=parse_parameters(method_match.group(5)),
                visibility=method_match.group(1) or "public",
                is_static=method_match.group(2) is not None,
                is_async=method_match.group(3) is not None,
                return_type=return_type.strip() if return_type else None,
            )
        )
        return

    property_match = _MEMBER_PROPERTY_RE.match(stripped)
    if property_match is not None:
        name = property_match.group(1)
        body.property_names.append(name)
        body.properties.append(VariableEntity(name=name, line=line_number, scope="class"))
