"""Tests for usage collection."""

from symnav.models import ROLE_DEFINITION, ROLE_TEST_USAGE, ROLE_USAGE
from symnav.parser import load_snapshot
from symnav.symbol_index import SymbolIndex
from symnav.usages import UsageCollector


def _lines(edges, role=None):
    return [
        (e.location.file_path, e.location.line)
        for e in edges
        if role is None or e.role == role
    ]


class TestCollect:
    """UsageCollector.collect."""

    def test_roles(self, sample_snapshot):
        foo = SymbolIndex(sample_snapshot).resolve("Foo")
        edges = UsageCollector(sample_snapshot).collect(foo)

        assert ("sample/foo.py", 4) in _lines(edges, ROLE_DEFINITION)
        usages = _lines(edges, ROLE_USAGE)
        assert ("sample/app.py", 3) in usages
        assert ("sample/app.py", 11) in usages
        assert ("sample/foo.py", 15) in usages
        assert set(_lines(edges, ROLE_TEST_USAGE)) == {("tests/test_foo.py", 1), ("tests/test_foo.py", 5)}

    def test_files_in_sorted_order(self, sample_snapshot):
        foo = SymbolIndex(sample_snapshot).resolve("Foo")
        files = [e.location.file_path for e in UsageCollector(sample_snapshot).collect(foo)]
        assert files == sorted(files)

    def test_file_filter(self, sample_snapshot):
        foo = SymbolIndex(sample_snapshot).resolve("Foo")
        edges = UsageCollector(sample_snapshot).collect(foo, file="sample/app.py")
        assert edges
        assert {e.location.file_path for e in edges} == {"sample/app.py"}

    def test_snippet_is_the_source_line(self, sample_snapshot):
        make_foo = SymbolIndex(sample_snapshot).resolve("make_foo")
        edges = UsageCollector(sample_snapshot).collect(make_foo, file="sample/app.py")
        assert 'foo = make_foo("world")' in [e.snippet for e in edges]


class TestBestContext:
    """Deduplication and ordering for best-context edges."""

    def test_dedup_by_line(self, make_project):
        root = make_project({
            "mod.py": "class Foo:\n    pass\n\n\npair = (Foo(), Foo())\n",
        })
        snapshot = load_snapshot(root)
        foo = SymbolIndex(snapshot).resolve("Foo")
        collector = UsageCollector(snapshot)

        assert _lines(collector.collect(foo), ROLE_USAGE) == [("mod.py", 5), ("mod.py", 5)]
        assert _lines(collector.collect_best_context(foo), ROLE_USAGE) == [("mod.py", 5)]

    def test_sorted(self, sample_snapshot):
        foo = SymbolIndex(sample_snapshot).resolve("Foo")
        edges = UsageCollector(sample_snapshot).collect_best_context(foo)
        keys = [(e.location.file_path, e.location.line, e.snippet) for e in edges]
        assert keys == sorted(keys)


class TestCollectAll:
    """Whole-snapshot usage counts."""

    def test_counts_exclude_definitions(self, sample_snapshot):
        index = SymbolIndex(sample_snapshot)
        counts = UsageCollector(sample_snapshot).collect_all()
        assert counts.get(index.resolve_qualified("Worker._helper"), 0) == 0
        assert counts[index.resolve_qualified("Worker.do_something")] == 1
        assert counts[index.resolve("Foo")] >= 4
