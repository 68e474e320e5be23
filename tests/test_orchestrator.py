"""Tests for the tool orchestrator."""

import logging

import pytest

from symnav.errors import InvalidInputError, NotFoundError
from symnav.orchestrator import Navigator


class TestPagination:
    """Paginated listings keep their totals stable."""

    @pytest.mark.parametrize("limit,offset", [(1, 0), (2, 2), (4, 3), (10, 0), (3, 9), (0, 0)])
    def test_window_size(self, navigator, sample_project_path, limit, offset):
        full = navigator.find_references(sample_project_path, "Foo")
        page = navigator.find_references(sample_project_path, "Foo", limit=limit, offset=offset)

        shown = sum(len(v) for v in page["references"].values())
        assert page["total"] == full["total"]
        assert shown == min(limit, max(0, full["total"] - offset))
        assert page["has_more"] == (offset + limit < full["total"])

    @pytest.mark.parametrize("limit,offset", [(-1, 0), (None, -2)])
    def test_negative_bounds(self, navigator, sample_project_path, limit, offset):
        with pytest.raises(InvalidInputError):
            navigator.find_definitions(sample_project_path, "Foo", limit=limit, offset=offset)


class TestValidation:
    """Requests rejected before any work is done."""

    def test_unknown_kind(self, navigator, sample_project_path):
        with pytest.raises(InvalidInputError):
            navigator.find_references(sample_project_path, "Foo", kind="struct")

    def test_invalid_rename_target_skips_loading(self, navigator, temp_dir):
        # the root does not exist, so reaching the loader would fail differently
        with pytest.raises(InvalidInputError):
            navigator.rename(temp_dir / "missing", "Foo", "not valid")

    def test_invalid_rewrite_pattern_skips_loading(self, navigator, temp_dir):
        with pytest.raises(InvalidInputError):
            navigator.rewrite(temp_dir / "missing", "a +", "b")

    def test_negative_context_limits(self, navigator, sample_project_path):
        with pytest.raises(InvalidInputError):
            navigator.best_context(sample_project_path, "Foo", dependencies=-1)

    def test_not_found(self, navigator, sample_project_path):
        with pytest.raises(NotFoundError):
            navigator.read_function(sample_project_path, "nope")

    def test_unknown_schema_depth_skips_loading(self, navigator, temp_dir):
        with pytest.raises(InvalidInputError):
            navigator.project_schema(temp_dir / "missing", depth="full")

    def test_unknown_symbol_kind_skips_loading(self, navigator, temp_dir):
        with pytest.raises(InvalidInputError):
            navigator.read_file(temp_dir / "missing", "a.py", "summary", symbol_kinds=["struct"])


class TestCaching:
    """Cache reuse and invalidation around mutations."""

    def test_reads_share_a_snapshot(self, navigator, sample_project_path):
        navigator.list_symbols(sample_project_path)
        navigator.find_dead_code(sample_project_path)
        assert len(navigator.cache) == 1

    def test_raw_file_reads_use_syntax_mode(self, navigator, sample_project_path):
        navigator.read_file(sample_project_path, "sample/foo.py")
        navigator.list_packages(sample_project_path)
        assert len(navigator.cache) == 1

    def test_schema_and_outline_share_the_full_snapshot(self, navigator, sample_project_path):
        schema = navigator.project_schema(sample_project_path, depth="summary")
        outline = navigator.read_file(sample_project_path, "sample/foo.py", "ast", exported_only=True)
        assert schema["counts"]["packages"] == 8
        assert "Foo.__init__" not in [s["name"] for s in outline["symbols"]]
        assert len(navigator.cache) == 1

    def test_rename_invalidates(self, navigator, project_copy):
        navigator.find_dead_code(project_copy)
        result = navigator.rename(project_copy, "Foo", "MyFoo")

        assert len(result.changed_files) == 3
        assert len(navigator.cache) == 0
        refs = navigator.find_references(project_copy, "MyFoo")
        assert refs["total"] == 6

    def test_dry_run_keeps_cache(self, navigator, project_copy):
        navigator.rename(project_copy, "Foo", "MyFoo", dry_run=True)
        assert len(navigator.cache) == 1

    def test_rewrite_invalidates(self, navigator, project_copy):
        navigator.list_packages(project_copy)
        result = navigator.rewrite(project_copy, '"hello " + self.name', 'f"hello {self.name}"')
        assert result.total_changes == 1
        assert len(navigator.cache) == 0
        source = navigator.read_function(project_copy, "Foo.greet")["source"]
        assert 'return f"hello {self.name}"' in source


class TestLogging:
    """Every tool logs its start and outcome."""

    def test_completed(self, navigator, sample_project_path, caplog):
        with caplog.at_level(logging.INFO, logger="symnav"):
            navigator.list_packages(sample_project_path)
        messages = [r.getMessage() for r in caplog.records if r.name == "symnav.orchestrator"]
        assert messages[0].startswith("list_packages started")
        assert messages[-1].startswith("list_packages completed: 8 result(s)")

    def test_failed(self, navigator, sample_project_path, caplog):
        with caplog.at_level(logging.INFO, logger="symnav"):
            with pytest.raises(NotFoundError):
                navigator.find_implementations(sample_project_path, "Missing")
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert errors and "find_implementations failed" in errors[-1].getMessage()


def test_default_navigator_owns_a_cache():
    nav = Navigator()
    try:
        assert len(nav.cache) == 0
    finally:
        nav.close()


def test_default_navigator_starts_its_cache(sample_project_path):
    nav = Navigator()
    try:
        assert nav.cache._thread is not None and nav.cache._thread.is_alive()
        nav.list_packages(sample_project_path)
        assert str(sample_project_path.resolve()) in nav.cache._observers
    finally:
        nav.close()
    assert nav.cache._thread is None
