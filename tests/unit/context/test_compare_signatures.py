from __future__ import annotations

from pathlib import Path

from offload_mcp.context import FileContextManager, count_arguments

SERVICE = "class Service:\n    def run(self, job, retries=3):\n        return job\n"


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_unanalyzed_calling_file_fails_softly(tmp_path: Path) -> None:
    manager = FileContextManager()

    result = manager.compare_signatures(tmp_path / "caller.py", "Service", "run")

    assert result.match is False
    assert result.issues == ("Calling file not analyzed",)
    assert result.expected_signature is None


def test_missing_method_definition_fails_softly(tmp_path: Path) -> None:
    caller = _write(tmp_path / "caller.py", "def main():\n    pass\n")
    manager = FileContextManager()
    manager.analyze(caller)

    result = manager.compare_signatures(caller, "Service", "run")

    assert result.match is False
    assert result.issues == ("Method definition not found",)


def test_argument_counts_outside_the_declared_range_are_reported(tmp_path: Path) -> None:
    service = _write(tmp_path / "service.py", SERVICE)
    caller = _write(
        tmp_path / "caller.py",
        "\n".join(
            [
                "from service import Service",
                "",
                "",
                "def main():",
                "    service = Service()",
                '    service.run("a")',
                '    service.run("a", 1, 2)',
            ]
        ),
    )
    manager = FileContextManager()
    manager.analyze(service)
    manager.analyze(caller)

    result = manager.compare_signatures(caller, "Service", "run")

    assert result.match is False
    assert result.expected_signature == "Service.run(job, retries?)"
    assert result.calling_signatures == ('service.run("a")', 'service.run("a", 1, 2)')
    assert result.issues == ("Line 7: expected 1-2 arguments, got 3",)
    assert result.definition is not None
    assert result.definition.class_name == "Service"


def test_matching_calls_report_no_issues(tmp_path: Path) -> None:
    service = _write(tmp_path / "service.py", SERVICE)
    caller = _write(tmp_path / "caller.py", "svc.run(job)\nsvc.run(job, retries=5)\n")
    manager = FileContextManager()
    manager.analyze(service)
    manager.analyze(caller)

    result = manager.compare_signatures(caller, "Service", "run")

    assert result.match is True
    assert result.issues == ()
    assert result.to_dict()["definition"]["kind"] == "method"


def test_count_arguments_ignores_nested_commas() -> None:
    assert count_arguments("") == 0
    assert count_arguments("a") == 1
    assert count_arguments("a, [1, 2], {x: 1, y: 2}") == 3
    assert count_arguments("fn(a, b), 'x,y'") == 2
