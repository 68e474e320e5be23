"""Integration tests for CLI commands (using grouped command hierarchy)."""

import json
from pathlib import Path

import pytest
import toml
from typer.testing import CliRunner

from symnav import __version__, cli_groups, config_manager
from symnav.cache import SnapshotCache
from symnav.cli import app
from symnav.orchestrator import Navigator


runner = CliRunner()


@pytest.fixture(autouse=True)
def fresh_navigator(monkeypatch):
    """Give every CLI invocation its own always-revalidating navigator."""
    nav = Navigator(SnapshotCache(check_interval=0))
    monkeypatch.setattr(cli_groups, "_navigator", nav)
    yield nav
    nav.close()


class TestTopLevel:
    """Tests for the root command."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"symnav v{__version__}" in result.stdout


class TestExploreCommands:
    """Tests for 'symnav explore' commands."""

    def test_packages(self, sample_project_path: Path):
        result = runner.invoke(app, ["explore", "packages", "--root", str(sample_project_path)])
        assert result.exit_code == 0
        assert "sample.foo" in result.stdout.splitlines()

    def test_refs_json(self, sample_project_path: Path):
        result = runner.invoke(app, ["explore", "refs", "Foo", "-r", str(sample_project_path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["total"] == 6

    def test_refs_unknown_symbol(self, sample_project_path: Path):
        result = runner.invoke(app, ["explore", "refs", "Missing", "-r", str(sample_project_path)])
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_impls(self, sample_project_path: Path):
        result = runner.invoke(app, ["explore", "impls", "Storage", "-r", str(sample_project_path)])
        assert result.exit_code == 0
        assert "MemoryStorage" in result.stdout

    def test_file_raw(self, sample_project_path: Path):
        result = runner.invoke(app, ["explore", "file", "sample/foo.py", "-r", str(sample_project_path)])
        assert result.exit_code == 0
        assert result.stdout == (sample_project_path / "sample" / "foo.py").read_text(encoding="utf-8")

    def test_file_ast_with_filters(self, sample_project_path: Path):
        result = runner.invoke(app, [
            "explore", "file", "sample/foo.py", "-r", str(sample_project_path),
            "--mode", "ast", "--kinds", "method", "--exported", "--json",
        ])
        assert result.exit_code == 0
        symbols = json.loads(result.stdout)["symbols"]
        assert [s["name"] for s in symbols] == ["Foo.greet"]

    def test_schema(self, sample_project_path: Path):
        result = runner.invoke(app, ["explore", "schema", "-r", str(sample_project_path)])
        assert result.exit_code == 0
        assert "sample.store" in result.stdout
        assert "Storage" in result.stdout

    def test_schema_bad_depth(self, sample_project_path: Path):
        result = runner.invoke(app, ["explore", "schema", "-r", str(sample_project_path), "--depth", "full"])
        assert result.exit_code != 0

    def test_context(self, sample_project_path: Path):
        result = runner.invoke(app, ["explore", "context", "Foo", "-r", str(sample_project_path)])
        assert result.exit_code == 0
        assert "sample/foo.py:4" in result.stdout
        assert "Test usages" in result.stdout


class TestHealthCommands:
    """Tests for 'symnav health' commands."""

    def test_dead(self, sample_project_path: Path):
        result = runner.invoke(app, ["health", "dead", "-r", str(sample_project_path)])
        assert result.exit_code == 0
        assert "_helper" in result.stdout
        assert "do_something" not in result.stdout

    def test_dead_json(self, sample_project_path: Path):
        result = runner.invoke(app, ["health", "dead", "-r", str(sample_project_path), "--json"])
        data = json.loads(result.stdout)
        assert data["total"] == 4
        assert {s["name"] for s in data["unused"]} == {"_unused_var", "_UNUSED_CONST", "_UnusedType", "_helper"}

    def test_complexity_threshold(self, sample_project_path: Path):
        result = runner.invoke(app, ["health", "complexity", "-r", str(sample_project_path), "--min", "3"])
        assert result.exit_code == 0
        assert "branchy" in result.stdout
        assert "simple" not in result.stdout

    def test_deps(self, sample_project_path: Path):
        result = runner.invoke(app, ["health", "deps", "-r", str(sample_project_path), "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["cycles"] == []

    def test_missing_root(self, temp_dir: Path):
        result = runner.invoke(app, ["health", "metrics", "-r", str(temp_dir / "missing")])
        assert result.exit_code == 1


class TestRefactorCommands:
    """Tests for 'symnav refactor' commands."""

    def test_rename_dry_run(self, project_copy: Path):
        before = (project_copy / "sample" / "foo.py").read_text(encoding="utf-8")
        result = runner.invoke(app, ["refactor", "rename", "Foo", "MyFoo", "-r", str(project_copy), "--dry-run"])

        assert result.exit_code == 0
        assert "[MODIFY] sample/foo.py" in result.stdout
        assert "Dry run" in result.stdout
        assert (project_copy / "sample" / "foo.py").read_text(encoding="utf-8") == before

    def test_rename_apply(self, project_copy: Path):
        result = runner.invoke(app, ["refactor", "rename", "Foo", "MyFoo", "-r", str(project_copy), "-y"])

        assert result.exit_code == 0
        assert "Renamed in 3 file(s)" in result.stdout
        assert "class MyFoo:" in (project_copy / "sample" / "foo.py").read_text(encoding="utf-8")

    def test_rename_declined(self, project_copy: Path):
        result = runner.invoke(
            app, ["refactor", "rename", "Foo", "MyFoo", "-r", str(project_copy)], input="n\n",
        )
        assert "cancelled" in result.stdout
        assert "class Foo:" in (project_copy / "sample" / "foo.py").read_text(encoding="utf-8")

    def test_rename_invalid_name(self, project_copy: Path):
        result = runner.invoke(app, ["refactor", "rename", "Foo", "class", "-r", str(project_copy), "-y"])
        assert result.exit_code == 1

    def test_rewrite(self, project_copy: Path):
        result = runner.invoke(
            app, ["refactor", "rewrite", "make_foo(\"world\")", "make_foo(\"there\")", "-r", str(project_copy), "-y"],
        )
        assert result.exit_code == 0
        assert "Rewrote 1 expression(s) in 1 file(s)" in result.stdout
        assert 'make_foo("there")' in (project_copy / "sample" / "app.py").read_text(encoding="utf-8")

    def test_rewrite_no_matches(self, project_copy: Path):
        result = runner.invoke(app, ["refactor", "rewrite", "nothing(1)", "other(1)", "-r", str(project_copy)])
        assert result.exit_code == 0
        assert "No matches." in result.stdout


class TestConfigCommands:
    """Tests for 'symnav config' commands."""

    @pytest.fixture
    def config_home(self, temp_dir: Path, monkeypatch):
        monkeypatch.setattr(config_manager, "BASE_DIR", temp_dir)
        monkeypatch.setattr(config_manager, "CONFIG_FILE", temp_dir / "config.toml")
        return temp_dir

    def test_set_and_persist(self, config_home: Path):
        result = runner.invoke(app, ["config", "set", "limits.usages", "7"])
        assert result.exit_code == 0
        assert toml.load(config_home / "config.toml") == {"limits": {"usages": 7}}

    def test_set_unknown_key(self, config_home: Path):
        result = runner.invoke(app, ["config", "set", "limits.colour", "red"])
        assert result.exit_code == 1
        assert not (config_home / "config.toml").exists()

    def test_show(self, config_home: Path):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "cache.ttl_seconds" in result.stdout
