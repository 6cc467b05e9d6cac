"""Lexical PHP adapter for namespaces, use imports, classes and method signatures."""

from __future__ import annotations

import re

from offload_mcp.adapters.base import (
    ClassDraft,
    MethodEntity,
    StructuralFacts,
    VariableEntity,
    parse_parameters,
    split_names,
)

_NAMESPACE_RE = re.compile(r"^namespace\s+(.+?);")
_USE_RE = re.compile(r"^use\s+(.+?);")
_CLASS_RE = re.compile(
    r"^(?:(?:abstract|final)\s+)?class\s+(\w+)"
    r"(?:\s+extends\s+([\w\\]+))?"
    r"(?:\s+implements\s+([^{]+))?"
)
_METHOD_RE = re.compile(
    r"^\s*(public|private|protected|static)\s+(?:(static)\s+)?(?:(?:abstract|final)\s+)?"
    r"function\s+&?(\w+)\s*\(([^)]*)\)(?:\s*:\s*(\??[\w\\|]+))?"
)
_PROPERTY_RE = re.compile(
    r"^\s*(?:public|private|protected|var)\s+(?:static\s+)?(?:readonly\s+)?"
    r"(?:\??[\w\\|]+\s+)?\$(\w+)"
)


class PhpLexicalAdapter:
    """Line-anchored lexical adapter for PHP source files."""

    name = "php_lexical"

    def supports_language(self, language: str) -> bool:
        """Return True for the php tag."""
        return language == "php"

    def extract(self, path: str, lines: list[str]) -> StructuralFacts:
        """Extract use imports, classes and visibility-prefixed methods."""
        _ = path
        facts = StructuralFacts()
        drafts: list[ClassDraft] = []
        current: ClassDraft | None = None

        for index, line in enumerate(lines):
            line_number = index + 1

            namespace_match = _NAMESPACE_RE.match(line)
            if namespace_match is not None:
                facts.namespace = namespace_match.group(1).strip()
                continue

            use_match = _USE_RE.match(line)
            if use_match is not None:
                facts.imports.append(use_match.group(1).strip())
                continue

            class_match = _CLASS_RE.match(line)
            if class_match is not None:
                current = ClassDraft(
                    name=class_match.group(1),
                    line=line_number,
                    superclass=class_match.group(2),
                    interfaces=split_names(class_match.group(3)),
                )
                drafts.append(current)
                continue

            # Methods and properties only count once a class has been declared.
            if current is None:
                continue

            method_match = _METHOD_RE.match(line)
            if method_match is not None:
                modifier = method_match.group(1)
                name = method_match.group(3)
                facts.methods.append(
                    MethodEntity(
                        class_name=current.name,
                        name=name,
                        line=line_number,
                        parameters=parse_parameters(method_match.group(4)),
                        visibility="public" if modifier == "static" else modifier,
                        is_static=modifier == "static" or method_match.group(2) is not None,
                        is_async=False,
                        return_type=method_match.group(5),
                    )
                )
                current.method_names.append(name)
                continue

            property_match = _PROPERTY_RE.match(line)
            if property_match is not None:
                name = property_match.group(1)
                current.property_names.append(name)
                facts.variables.append(VariableEntity(name=name, line=line_number, scope="class"))

        facts.classes.extend(draft.freeze() for draft in drafts)
        return facts
