from __future__ import annotations

from dataclasses import dataclass

from offload_mcp.adapters import (
    AdapterRegistry,
    StructuralFacts,
    UnknownLanguageAdapter,
    build_adapter_registry,
    detect_language,
    known_languages,
    parse_parameters,
    render_signature,
)


@dataclass(slots=True)
class TagAdapter:
    name: str
    language: str

    def supports_language(self, language: str) -> bool:
        return language == self.language

    def extract(self, path: str, lines: list[str]) -> StructuralFacts:
        _ = path
        _ = lines
        return StructuralFacts(imports=[self.name])


def test_detect_language_uses_lower_cased_extension() -> None:
    assert detect_language("src/App.TSX") == "typescript"
    assert detect_language("lib/index.jsx") == "javascript"
    assert detect_language("plugin.php") == "php"
    assert detect_language("tool.py") == "python"
    assert detect_language("Main.java") == "java"
    assert detect_language("README") == "unknown"
    assert detect_language("notes.md") == "unknown"
    assert "kotlin" in known_languages()


def test_registry_selects_first_matching_adapter_in_registration_order() -> None:
    registry = AdapterRegistry()
    registry.register(TagAdapter(name="first", language="python"))
    registry.register(TagAdapter(name="second", language="python"))
    registry.register(UnknownLanguageAdapter(), fallback=True)

    assert registry.select("python").name == "first"
    assert registry.names() == ("first", "second", "unknown")


def test_unknown_language_degrades_to_empty_facts() -> None:
    registry = build_adapter_registry()

    adapter = registry.select("ruby")
    facts = adapter.extract("/x.rb", ["class Foo", "  def bar(a)", "  end", "end"])

    assert adapter.name == "unknown"
    assert facts == StructuralFacts()


def test_default_registry_order() -> None:
    assert build_adapter_registry().names() == (
        "ts_js_lexical",
        "php_lexical",
        "python_lexical",
        "unknown",
    )


def test_parse_parameters_handles_optional_typed_and_default_values() -> None:
    params = parse_parameters("id: number, label?: string, retries = 3, ...rest")

    assert [param.name for param in params] == ["id", "label", "retries", "rest"]
    assert params[0].type == "number"
    assert params[0].optional is False
    assert params[1].optional is True
    assert params[2].default == "3"
    assert params[2].optional is True
    assert params[3].variadic is True
    assert parse_parameters("   ") == ()


def test_render_signature_marks_optional_and_rest_parameters() -> None:
    params = parse_parameters("a, b?, ...c")

    assert render_signature("Service.run", params) == "Service.run(a, b?, ...c)"


def test_registering_an_adapter_resets_memoised_selection() -> None:
    registry = AdapterRegistry()
    registry.register(UnknownLanguageAdapter(), fallback=True)
    assert registry.select("python").name == "unknown"

    registry.register(TagAdapter(name="late", language="python"))

    assert registry.select("python").name == "late"
