"""Pytest configuration and fixtures for symnav tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest

from symnav.cache import SnapshotCache
from symnav.orchestrator import Navigator
from symnav.parser import load_snapshot
from symnav.snapshot import Snapshot

# The sample project contains its own test module; it is analyzed, not run.
collect_ignore = ["fixtures"]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def project_copy(temp_dir: Path, sample_project_path: Path) -> Path:
    """Writable copy of the sample project."""
    target = temp_dir / "sample_project"
    shutil.copytree(sample_project_path, target)
    return target


@pytest.fixture
def sample_snapshot(sample_project_path: Path) -> Snapshot:
    """Fully resolved snapshot of the sample project."""
    return load_snapshot(sample_project_path)


@pytest.fixture
def make_project(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative path: source}`` into a fresh project directory."""

    def _make(files: Dict[str, str]) -> Path:
        root = temp_dir / "project"
        for rel_path, source in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def navigator() -> Generator[Navigator, None, None]:
    """Navigator with a private cache that always revalidates."""
    nav = Navigator(SnapshotCache(check_interval=0))
    yield nav
    nav.close()
