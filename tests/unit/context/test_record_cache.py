from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from offload_mcp.context import FileContextManager, normalize_path
from offload_mcp.context import store as store_module


def _bump_mtime(path: Path) -> None:
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 2_000_000_000))


def test_unchanged_file_is_served_from_cache_without_reading(tmp_path: Path) -> None:
    source = tmp_path / "app.js"
    source.write_text("function main() {\n  run();\n}\n", encoding="utf-8")
    manager = FileContextManager()

    first = manager.analyze(source)
    with patch("offload_mcp.context.store.read_source_text") as reader:
        second = manager.analyze(source)

    reader.assert_not_called()
    assert second is first
    assert second.content_hash == first.content_hash


def test_force_reparse_reads_even_when_fresh(tmp_path: Path) -> None:
    source = tmp_path / "app.js"
    source.write_text("function main() {}\n", encoding="utf-8")
    manager = FileContextManager()
    manager.analyze(source)

    with patch(
        "offload_mcp.context.store.read_source_text", wraps=store_module.read_source_text
    ) as reader:
        record = manager.analyze(source, force_reparse=True)

    reader.assert_called_once()
    assert [function.name for function in record.facts.functions] == ["main"]


def test_modified_file_is_fully_reparsed(tmp_path: Path) -> None:
    source = tmp_path / "app.js"
    source.write_text("function main() {}\n", encoding="utf-8")
    manager = FileContextManager()
    before = manager.analyze(source)

    with source.open("a", encoding="utf-8") as handle:
        handle.write("function added() {}\n")
    _bump_mtime(source)
    after = manager.analyze(source)

    assert after.content_hash != before.content_hash
    assert [function.name for function in after.facts.functions] == ["main", "added"]
    assert [function.name for function in before.facts.functions] == ["main"]
    assert "app.js:function:added" in "\n".join(manager.all_symbols())


def test_record_fields_describe_the_file(tmp_path: Path) -> None:
    source = tmp_path / "pkg" / ".." / "tool.py"
    (tmp_path / "pkg").mkdir()
    source.write_text("import os\n\n\ndef run():\n    pass\n", encoding="utf-8")
    manager = FileContextManager()

    record = manager.analyze(source)

    assert record.path == normalize_path(tmp_path / "tool.py")
    assert record.language == "python"
    assert record.lines == ("import os", "", "", "def run():", "    pass", "")
    assert record.mtime_ns == (tmp_path / "tool.py").stat().st_mtime_ns
    assert len(record.content_hash) == 32
    assert manager.record_for(tmp_path / "tool.py") is record


def test_missing_file_raises_os_error(tmp_path: Path) -> None:
    manager = FileContextManager()

    with pytest.raises(FileNotFoundError):
        manager.analyze(tmp_path / "missing.ts")


def test_unknown_language_yields_empty_structure(tmp_path: Path) -> None:
    source = tmp_path / "notes.txt"
    source.write_text("class Foo {}\n", encoding="utf-8")
    manager = FileContextManager()

    record = manager.analyze(source)

    assert record.language == "unknown"
    assert record.facts.classes == []
    assert manager.find_symbol("Foo") == []
