"""Tests for byte splicing, previews and safe writes."""

import os
from pathlib import Path

import pytest

from symnav.diff_engine import DiffEngine, splice, splice_spans
from symnav.errors import PartialWriteFailure
from symnav.reports import FileChange


class TestSplice:
    """Byte-range edits."""

    def test_edits_on_one_line(self):
        lines = [b"a = foo(foo)\n", b"b = 1\n"]
        edits = [(1, 4, 7, b"bar"), (1, 8, 11, b"bar")]
        assert splice(lines, edits) == b"a = bar(bar)\nb = 1\n"

    def test_multibyte_columns(self):
        lines = ["s = ('é', old)\n".encode("utf-8")]
        start = lines[0].index(b"old")
        assert splice(lines, [(1, start, start + 3, b"new")]).decode("utf-8") == "s = ('é', new)\n"

    def test_multiline_span(self):
        source = b"x = call(\n    1,\n)\ny = 2\n"
        lines = source.splitlines(keepends=True)
        assert splice_spans(source, lines, [(1, 4, 3, 1, b"other()")]) == b"x = other()\ny = 2\n"


class TestDiffEngine:
    """Preview and write."""

    def test_create_diff(self, temp_dir: Path):
        diff = DiffEngine(temp_dir).create_diff("a\nb\n", "a\nc\n", "mod.py")
        assert "--- a/mod.py" in diff
        assert "+++ b/mod.py" in diff
        assert "-b" in diff and "+c" in diff

    def test_preview(self, temp_dir: Path):
        change = FileChange("mod.py", b"x = 1\n", b"x = 2\n", 1)
        diffs = DiffEngine(temp_dir).preview([change])
        assert diffs[0].path == "mod.py"
        assert "+x = 2" in diffs[0].diff

    def test_safe_write_keeps_mode(self, temp_dir: Path):
        path = temp_dir / "script.py"
        path.write_bytes(b"old\n")
        os.chmod(path, 0o755)
        DiffEngine.safe_write(path, b"new\n")
        assert path.read_bytes() == b"new\n"
        assert path.stat().st_mode & 0o777 == 0o755
        assert not (temp_dir / "script.py.tmp").exists()

    def test_apply_changes_reports_written_files(self, temp_dir: Path):
        (temp_dir / "a.py").write_bytes(b"a\n")
        changes = [
            FileChange("a.py", b"a\n", b"b\n", 1),
            FileChange("missing_dir/b.py", b"", b"c\n", 1),
        ]
        with pytest.raises(PartialWriteFailure) as excinfo:
            DiffEngine(temp_dir).apply_changes(changes)
        assert excinfo.value.changed_files == ["a.py"]
        assert (temp_dir / "a.py").read_bytes() == b"b\n"

    def test_negative_change_count(self):
        with pytest.raises(ValueError):
            FileChange("a.py", b"", b"", -1)
