"""Fallback adapter for languages without structural rules."""

from __future__ import annotations

from offload_mcp.adapters.base import StructuralFacts


class UnknownLanguageAdapter:
    """Default adapter that degrades to empty structural facts."""

    name = "unknown"

    def supports_language(self, language: str) -> bool:
        """Fallback supports any language tag."""
        _ = language
        return True

    def extract(self, path: str, lines: list[str]) -> StructuralFacts:
        """Fallback returns no imports, classes or functions."""
        _ = path
        _ = lines
        return StructuralFacts()
