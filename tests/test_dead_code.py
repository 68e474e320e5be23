"""Tests for liveness analysis."""

import pytest

from symnav.dead_code import LivenessAnalyzer, is_dead_candidate
from symnav.errors import InvalidInputError
from symnav.models import KIND_FUNCTION, KIND_METHOD, Declaration
from symnav.parser import load_snapshot

DEFAULT_DEAD = {"_unused_var", "_UNUSED_CONST", "_UnusedType", "_helper"}


def _names(report):
    return {sym.name for sym in report.unused}


class TestFindDead:
    """LivenessAnalyzer.find_dead on the sample project."""

    def test_default_dead_set(self, sample_snapshot):
        report = LivenessAnalyzer(sample_snapshot).find_dead()
        assert _names(report) == DEFAULT_DEAD
        assert report.total == 4
        assert report.exported_count == 0
        assert not report.has_more

    def test_used_and_exported_members_are_live(self, sample_snapshot):
        names = _names(LivenessAnalyzer(sample_snapshot).find_dead())
        assert "do_something" not in names
        assert "Worker" not in names
        assert "_items" not in names

    def test_include_exported(self, sample_snapshot):
        report = LivenessAnalyzer(sample_snapshot).find_dead(include_exported=True)
        by_name = {sym.name: sym for sym in report.unused}
        assert DEFAULT_DEAD <= set(by_name)
        assert by_name["run"].exported
        assert "make_foo" not in by_name
        assert report.exported_count == sum(1 for s in report.unused if s.exported)

    def test_sorted_and_grouped(self, sample_snapshot):
        report = LivenessAnalyzer(sample_snapshot).find_dead()
        assert [s.line for s in report.unused] == [3, 5, 8, 13]
        assert list(report.grouped()) == ["sample.dead"]
        assert report.by_package == {"sample.dead": 4}

    def test_limit_keeps_total(self, sample_snapshot):
        report = LivenessAnalyzer(sample_snapshot).find_dead(limit=2)
        assert len(report.unused) == 2
        assert report.total == 4
        assert report.has_more

    def test_negative_limit(self, sample_snapshot):
        with pytest.raises(InvalidInputError):
            LivenessAnalyzer(sample_snapshot).find_dead(limit=-1)

    @pytest.mark.parametrize("package,expected", [
        ("sample", 4),
        ("sample.dead", 4),
        ("sample.foo", 0),
    ])
    def test_package_filter(self, sample_snapshot, package, expected):
        report = LivenessAnalyzer(sample_snapshot).find_dead(package=package)
        assert report.total == expected

    def test_unused_local_variable(self, make_project):
        root = make_project({
            "mod.py": "def compute():\n    scratch = 1\n    return 2\n",
        })
        names = _names(LivenessAnalyzer(load_snapshot(root)).find_dead())
        assert names == {"scratch"}

    def test_overrides_reached_through_the_base_are_live(self, make_project):
        root = make_project({
            "jobs.py": (
                "class Base:\n"
                "    def run(self):\n"
                "        return self._step()\n"
                "\n"
                "    def _step(self):\n"
                "        raise NotImplementedError\n"
                "\n"
                "\n"
                "class Child(Base):\n"
                "    def _step(self):\n"
                "        return 1\n"
                "\n"
                "    def _unused(self):\n"
                "        return 2\n"
                "\n"
                "\n"
                "Child().run()\n"
            ),
        })
        names = _names(LivenessAnalyzer(load_snapshot(root)).find_dead())
        assert names == {"_unused"}


class TestCandidates:
    """Declarations that are never reported."""

    def _decl(self, **overrides):
        fields = dict(
            name="thing", kind=KIND_FUNCTION, package="pkg", file_path="pkg/__init__.py",
            line=1, column=0, qualname="thing",
        )
        fields.update(overrides)
        return Declaration(**fields)

    @pytest.mark.parametrize("name", ["_", "__init__", "main", "test_something"])
    def test_excluded_names(self, name):
        assert not is_dead_candidate(self._decl(name=name))

    def test_decorated_functions_are_registered(self):
        assert not is_dead_candidate(self._decl(name="_hook", decorators=["app.route"]))
        assert is_dead_candidate(self._decl(name="_hook", decorators=["staticmethod"]))

    def test_exported_methods_are_never_candidates(self):
        method = self._decl(kind=KIND_METHOD, exported=True)
        assert not is_dead_candidate(method, include_exported=True)

    def test_parameters(self):
        assert not is_dead_candidate(self._decl(name="_arg", is_parameter=True))
