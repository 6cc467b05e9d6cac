"""Core adapter protocol and structural entity types."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Protocol

_PARAMETER_RE = re.compile(
    r"^(?:\.\.\.|\*{1,2}|&)?\$?([A-Za-z_$][A-Za-z0-9_$]*)(\?)?\s*(?::\s*([^=]+?))?\s*(?:=\s*(.+))?$"
)
_TYPED_PHP_PARAMETER_RE = re.compile(r"^\??([A-Za-z_\\][A-Za-z0-9_\\|]*)\s+(&?\.{0,3}\$.+)$")


@dataclass(slots=True, frozen=True)
class ParameterInfo:
    """One parsed function or method parameter."""

    name: str
    type: str | None = None
    optional: bool = False
    default: str | None = None
    variadic: bool = False


@dataclass(slots=True, frozen=True)
class ClassEntity:
    """Class declaration with its discovered member names."""

    name: str
    line: int
    superclass: str | None = None
    interfaces: tuple[str, ...] = ()
    method_names: tuple[str, ...] = ()
    property_names: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class FunctionEntity:
    """Top-level function declaration."""

    name: str
    line: int
    parameters: tuple[ParameterInfo, ...] = ()
    is_async: bool = False
    return_type: str | None = None


@dataclass(slots=True, frozen=True)
class MethodEntity:
    """Method declaration owned by a class."""

    class_name: str
    name: str
    line: int
    parameters: tuple[ParameterInfo, ...] = ()
    visibility: str = "public"
    is_static: bool = False
    is_async: bool = False
    return_type: str | None = None


@dataclass(slots=True, frozen=True)
class VariableEntity:
    """Variable or property binding."""

    name: str
    line: int
    scope: str = "global"


StructuralEntity = ClassEntity | FunctionEntity | MethodEntity | VariableEntity
SymbolEntity = ClassEntity | FunctionEntity | MethodEntity


@dataclass(slots=True)
class StructuralFacts:
    """Per-file structural facts produced by one adapter pass."""

    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    classes: list[ClassEntity] = field(default_factory=list)
    functions: list[FunctionEntity] = field(default_factory=list)
    methods: list[MethodEntity] = field(default_factory=list)
    variables: list[VariableEntity] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    namespace: str | None = None


@dataclass(slots=True)
class ClassDraft:
    """Mutable class record filled in while an adapter walks the lines."""

    name: str
    line: int
    superclass: str | None = None
    interfaces: tuple[str, ...] = ()
    method_names: list[str] = field(default_factory=list)
    property_names: list[str] = field(default_factory=list)

    def freeze(self) -> ClassEntity:
        """Return the immutable entity for this draft."""
        return ClassEntity(
            name=self.name,
            line=self.line,
            superclass=self.superclass,
            interfaces=self.interfaces,
            method_names=tuple(self.method_names),
            property_names=tuple(self.property_names),
        )


def split_names(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated name list, dropping blanks."""
    if raw is None:
        return ()
    return tuple(name.strip() for name in raw.split(",") if name.strip())


def parse_parameters(raw: str) -> tuple[ParameterInfo, ...]:
    """Parse a raw parameter list using `name[?]: type = default` heuristics.

    The string is split on every comma, so defaults or types that contain commas
    produce extra, partial parameters. Unparseable pieces are skipped.
    """
    if not raw.strip():
        return ()
    params: list[ParameterInfo] = []
    for part in raw.split(","):
        trimmed = part.strip()
        if not trimmed:
            continue
        php_typed = _TYPED_PHP_PARAMETER_RE.match(trimmed)
        php_type: str | None = None
        if php_typed is not None:
            php_type = php_typed.group(1)
            trimmed = php_typed.group(2)
        match = _PARAMETER_RE.match(trimmed)
        if match is None:
            continue
        type_text = match.group(3).strip() if match.group(3) else php_type
        default = match.group(4).strip() if match.group(4) else None
        variadic = trimmed.startswith(("...", "*")) or "...$" in trimmed
        params.append(
            ParameterInfo(
                name=match.group(1),
                type=type_text or None,
                optional=match.group(2) is not None or default is not None,
                default=default,
                variadic=variadic,
            )
        )
    return tuple(params)


def render_signature(name: str, parameters: tuple[ParameterInfo, ...]) -> str:
    """Render `name(a, b?, ...c)` for prompt-facing summaries."""
    rendered: list[str] = []
    for param in parameters:
        text = f"...{param.name}" if param.variadic else param.name
        if param.optional:
            text += "?"
        rendered.append(text)
    return f"{name}({', '.join(rendered)})"


class LanguageAdapter(Protocol):
    """Protocol implemented by structural extraction adapters."""

    name: str

    def supports_language(self, language: str) -> bool:
        """Return True when adapter handles a language tag."""

    def extract(self, path: str, lines: list[str]) -> StructuralFacts:
        """Return structural facts for one file's line array. Never raises."""
