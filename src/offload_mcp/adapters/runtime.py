"""Runtime adapter registry construction."""

from __future__ import annotations

from offload_mcp.adapters.fallback import UnknownLanguageAdapter
from offload_mcp.adapters.php import PhpLexicalAdapter
from offload_mcp.adapters.python import PythonLexicalAdapter
from offload_mcp.adapters.registry import AdapterRegistry
from offload_mcp.adapters.ts_js import JavaScriptLexicalAdapter


def build_adapter_registry() -> AdapterRegistry:
    """Build the default registry: JS/TS, PHP, Python, then the empty fallback."""
    registry = AdapterRegistry()
    registry.register(JavaScriptLexicalAdapter())
    registry.register(PhpLexicalAdapter())
    registry.register(PythonLexicalAdapter())
    registry.register(UnknownLanguageAdapter(), fallback=True)
    return registry
