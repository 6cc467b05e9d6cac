from __future__ import annotations

from pathlib import Path

from offload_mcp.context import FileContextManager, extract_call_sites, normalize_path

FOO_BAR_SOURCE = "\n".join(
    [
        "// utilities",
        "import { log } from './log';",
        "",
        "",
        "function foo() {",
        "  alpha();",
        "  beta(1, 2);",
        "}",
        "",
        "function bar() {",
        "  gamma();",
        "}",
    ]
)


def test_calls_from_stops_at_next_declaration(tmp_path: Path) -> None:
    source = tmp_path / "util.js"
    source.write_text(FOO_BAR_SOURCE, encoding="utf-8")
    manager = FileContextManager()
    record = manager.analyze(source)
    assert [(item.name, item.line) for item in record.facts.functions] == [("foo", 5), ("bar", 10)]

    calls = manager.calls_from(None, "foo")

    assert [(call.line, call.callee) for call in calls] == [(6, "alpha"), (7, "beta")]
    assert {call.caller for call in calls} == {"foo"}
    assert calls[1].arguments == "1, 2"


def test_last_declaration_range_runs_to_end_of_file(tmp_path: Path) -> None:
    source = tmp_path / "util.js"
    source.write_text(FOO_BAR_SOURCE, encoding="utf-8")
    manager = FileContextManager()
    manager.analyze(source)

    calls = manager.calls_from(None, "bar")

    assert [(call.line, call.callee) for call in calls] == [(11, "gamma")]


def test_attribution_is_persisted_in_the_call_graph(tmp_path: Path) -> None:
    source = tmp_path / "util.js"
    source.write_text(FOO_BAR_SOURCE, encoding="utf-8")
    manager = FileContextManager()
    manager.analyze(source)

    manager.calls_from(None, "foo")

    callers = {call.line: call.caller for call in manager.calls_to("a")}
    assert callers[6] == "foo"
    assert callers[11] == normalize_path(source)


def test_method_range_uses_class_and_method_name(tmp_path: Path) -> None:
    source = tmp_path / "service.py"
    source.write_text(
        "\n".join(
            [
                "class Service:",
                "    def start(self):",
                "        self.connect()",
                "        log('started')",
                "",
                "    def stop(self):",
                "        self.close()",
            ]
        ),
        encoding="utf-8",
    )
    manager = FileContextManager()
    manager.analyze(source)

    calls = manager.calls_from("Service", "start")

    assert [(call.line, call.callee) for call in calls] == [
        (3, "self.connect"),
        (3, "connect"),
        (4, "log"),
    ]
    assert {call.caller for call in calls} == {"Service::start"}
    assert manager.calls_from("Other", "start") == []


def test_extraction_skips_control_flow_keywords_and_declarations() -> None:
    lines = [
        "if (ready) { run(); }",
        "for (const x of xs) { obj.step(x); }",
        "def helper(a):",
        "while (go()) {}",
    ]

    sites = extract_call_sites("/f.js", lines)

    assert [(site.line, site.callee) for site in sites] == [
        (1, "run"),
        (2, "obj.step"),
        (2, "step"),
        (4, "go"),
    ]
    assert all(site.caller == "/f.js" for site in sites)


def test_calls_to_matches_callee_substrings_across_files(tmp_path: Path) -> None:
    first = tmp_path / "a.js"
    first.write_text("api.fetchUser(1);\n", encoding="utf-8")
    second = tmp_path / "b.js"
    second.write_text("fetchAll();\n", encoding="utf-8")
    manager = FileContextManager()
    manager.analyze(first)
    manager.analyze(second)

    callees = [call.callee for call in manager.calls_to("fetch")]

    assert callees == ["api.fetchUser", "fetchUser", "fetchAll"]
