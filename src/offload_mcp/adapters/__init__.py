"""Language adapter interfaces."""

from .base import (
    ClassEntity,
    FunctionEntity,
    LanguageAdapter,
    MethodEntity,
    ParameterInfo,
    StructuralEntity,
    StructuralFacts,
    SymbolEntity,
    VariableEntity,
    parse_parameters,
    render_signature,
)
from .fallback import UnknownLanguageAdapter
from .language import UNKNOWN_LANGUAGE, detect_language, known_languages
from .php import PhpLexicalAdapter
from .python import PythonLexicalAdapter
from .registry import AdapterRegistry
from .runtime import build_adapter_registry
from .ts_js import JavaScriptLexicalAdapter, resolve_import_path

__all__ = [
    "AdapterRegistry",
    "ClassEntity",
    "FunctionEntity",
    "JavaScriptLexicalAdapter",
    "LanguageAdapter",
    "MethodEntity",
    "ParameterInfo",
    "PhpLexicalAdapter",
    "PythonLexicalAdapter",
    "StructuralEntity",
    "StructuralFacts",
    "SymbolEntity",
    "UNKNOWN_LANGUAGE",
    "UnknownLanguageAdapter",
    "VariableEntity",
    "build_adapter_registry",
    "detect_language",
    "known_languages",
    "parse_parameters",
    "render_signature",
    "resolve_import_path",
]
