"""Language tag to structural adapter selection."""

from __future__ import annotations

from dataclasses import dataclass, field

from offload_mcp.adapters.base import LanguageAdapter


@dataclass(slots=True)
class AdapterRegistry:
    """Adapters consulted in registration order, with one fallback for unknown tags.

    Selections are memoised per language tag; registering an adapter resets the memo.
    """

    _adapters: list[LanguageAdapter] = field(default_factory=list)
    _fallback: LanguageAdapter | None = None
    _selected: dict[str, LanguageAdapter] = field(default_factory=dict)

    def register(self, adapter: LanguageAdapter, *, fallback: bool = False) -> None:
        """Append an adapter, or install it as the fallback."""
        if fallback:
            self._fallback = adapter
        else:
            self._adapters.append(adapter)
        self._selected.clear()

    def select(self, language: str) -> LanguageAdapter:
        """Return the first adapter supporting `language`, else the fallback."""
        cached = self._selected.get(language)
        if cached is not None:
            return cached
        chosen = next(
            (adapter for adapter in self._adapters if adapter.supports_language(language)),
            self._fallback,
        )
        if chosen is None:
            raise LookupError(f"No adapter supports language: {language}")
        self._selected[language] = chosen
        return chosen

    def names(self) -> tuple[str, ...]:
        """Return adapter names in selection order, fallback last."""
        fallback = () if self._fallback is None else (self._fallback.name,)
        return (*(adapter.name for adapter in self._adapters), *fallback)
