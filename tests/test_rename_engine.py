"""Tests for project-wide renames."""

from pathlib import Path

import pytest

from symnav.diff_engine import DiffEngine
from symnav.errors import InvalidInputError, NotFoundError, PartialWriteFailure
from symnav.parser import load_snapshot
from symnav.rename_engine import RenameEngine, validate_identifier


def _read(root: Path, rel_path: str) -> str:
    return (root / rel_path).read_text(encoding="utf-8")


class TestRename:
    """RenameEngine.rename."""

    def test_only_the_resolved_declaration_changes(self, make_project):
        root = make_project({
            "a.py": "class Foo:\n    pass\n\n\nfoo = Foo()\n",
            "b.py": "class Foo:\n    pass\n",
        })
        result = RenameEngine(load_snapshot(root)).rename("Foo", "Bar")

        assert result.changed_files == ["a.py"]
        assert result.collisions == []
        assert _read(root, "a.py") == "class Bar:\n    pass\n\n\nfoo = Bar()\n"
        assert _read(root, "b.py") == "class Foo:\n    pass\n"

    def test_rename_across_files(self, project_copy):
        result = RenameEngine(load_snapshot(project_copy)).rename("Foo", "MyFoo")

        assert result.changed_files == ["sample/app.py", "sample/foo.py", "tests/test_foo.py"]
        app = _read(project_copy, "sample/app.py")
        assert "from sample.foo import MyFoo, make_foo" in app
        assert 'print(MyFoo("direct").greet())' in app
        foo = _read(project_copy, "sample/foo.py")
        assert "class MyFoo:" in foo
        assert "def make_foo(name: str) -> MyFoo:" in foo
        assert "return MyFoo(name)" in foo
        # docstrings and comments are left alone
        assert '"""Foo and a factory for it."""' in foo
        assert "from sample.foo import MyFoo" in _read(project_copy, "tests/test_foo.py")

    def test_rename_method(self, project_copy):
        result = RenameEngine(load_snapshot(project_copy)).rename("Foo.greet", "salute")

        assert {"sample/foo.py", "sample/app.py", "tests/test_foo.py"} <= set(result.changed_files)
        assert "def salute(self) -> str:" in _read(project_copy, "sample/foo.py")
        assert 'Foo("x").salute()' in _read(project_copy, "tests/test_foo.py")

    def test_dry_run_leaves_disk_untouched(self, project_copy):
        before = _read(project_copy, "sample/foo.py")
        snapshot = load_snapshot(project_copy)

        first = RenameEngine(snapshot).rename("Foo", "MyFoo", dry_run=True)
        second = RenameEngine(snapshot).rename("Foo", "MyFoo", dry_run=True)

        assert _read(project_copy, "sample/foo.py") == before
        assert first.diffs == second.diffs
        assert [d.path for d in first.diffs] == first.changed_files
        assert "+class MyFoo:" in first.diffs[1].diff

    def test_updates_dunder_all(self, make_project):
        root = make_project({
            "mod.py": '__all__ = ["old"]\n\n\ndef old():\n    pass\n',
            "user.py": "from mod import old\n\nold()\n",
        })
        RenameEngine(load_snapshot(root)).rename("old", "new")

        assert _read(root, "mod.py") == '__all__ = ["new"]\n\n\ndef new():\n    pass\n'
        assert _read(root, "user.py") == "from mod import new\n\nnew()\n"

    def test_renaming_a_parameter_updates_keyword_arguments(self, make_project):
        root = make_project({
            "geo.py": "def area(width, height=1):\n    return width * height\n",
            "use.py": "from geo import area\n\nprint(area(width=3, height=2))\nother = dict(width=1)\n",
        })
        result = RenameEngine(load_snapshot(root)).rename("width", "w")

        assert result.changed_files == ["geo.py", "use.py"]
        assert _read(root, "geo.py") == "def area(w, height=1):\n    return w * height\n"
        assert _read(root, "use.py") == (
            "from geo import area\n\nprint(area(w=3, height=2))\nother = dict(width=1)\n"
        )

    def test_keyword_arguments_of_a_class_call_follow_init(self, make_project):
        root = make_project({
            "box.py": (
                "class Box:\n"
                "    def __init__(self, size):\n"
                "        self.size = size\n"
                "\n"
                "\n"
                "box = Box(size=2)\n"
            ),
        })
        RenameEngine(load_snapshot(root)).rename("size", "length")

        assert _read(root, "box.py") == (
            "class Box:\n"
            "    def __init__(self, length):\n"
            "        self.size = length\n"
            "\n"
            "\n"
            "box = Box(length=2)\n"
        )

    def test_collisions_warn_but_do_not_block(self, project_copy):
        result = RenameEngine(load_snapshot(project_copy)).rename("make_foo", "Foo", dry_run=True)
        assert result.collisions
        assert "sample/foo.py" in result.changed_files

    def test_member_rename_ignores_module_level_names(self, make_project):
        root = make_project({
            "mod.py": (
                "LIMIT = 3\n"
                "\n"
                "\n"
                "class Counter:\n"
                "    def step(self):\n"
                "        return LIMIT\n"
                "\n"
                "\n"
                "Counter().step()\n"
            ),
        })
        result = RenameEngine(load_snapshot(root)).rename("Counter.step", "LIMIT", dry_run=True)

        assert result.changed_files == ["mod.py"]
        assert result.collisions == []

    def test_same_name(self, sample_snapshot):
        result = RenameEngine(sample_snapshot).rename("Foo", "Foo")
        assert result.changed_files == []
        assert result.collisions

    @pytest.mark.parametrize("new_name", ["class", "1abc", "has space", ""])
    def test_invalid_new_name(self, sample_snapshot, new_name):
        with pytest.raises(InvalidInputError):
            RenameEngine(sample_snapshot).rename("Foo", new_name)

    def test_unknown_symbol(self, sample_snapshot):
        with pytest.raises(NotFoundError):
            RenameEngine(sample_snapshot).rename("Nope", "Other")

    def test_partial_write_failure(self, project_copy, monkeypatch):
        real_write = DiffEngine.safe_write
        calls = []

        def flaky_write(path, content):
            calls.append(path)
            if len(calls) > 1:
                raise OSError("disk full")
            real_write(path, content)

        monkeypatch.setattr(DiffEngine, "safe_write", staticmethod(flaky_write))
        with pytest.raises(PartialWriteFailure) as excinfo:
            RenameEngine(load_snapshot(project_copy)).rename("Foo", "MyFoo")

        assert excinfo.value.changed_files == ["sample/app.py"]
        assert "MyFoo" in _read(project_copy, "sample/app.py")
        assert "class Foo:" in _read(project_copy, "sample/foo.py")


def test_validate_identifier():
    validate_identifier("snake_case")
    validate_identifier("CamelCase")
    with pytest.raises(InvalidInputError):
        validate_identifier("def")
