"""Runtime configuration for symnav: paths, cache timings and default limits."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Set

BASE_DIR = Path(os.environ.get("SYMNAV_HOME", str(Path.home() / ".symnav"))).expanduser()
SUPPORTED_EXTENSIONS = {".py"}

SKIP_DIRS: Set[str] = {
    ".venv", "venv", "__pycache__", "node_modules", ".git",
    "site-packages", ".tox", ".pytest_cache", "build", "dist",
    ".mypy_cache", ".ruff_cache", "htmlcov", ".eggs", ".symnav",
}

# Names that are reachable without any reference in the project.
ENTRY_POINTS: Set[str] = {"main"}

# Load overrides from TOML file (if available)
try:
    from .config_manager import load_cache_config, load_limits_config
    _cache_config = load_cache_config()
    _limits_config = load_limits_config()
except ImportError:
    _cache_config = {}
    _limits_config = {}

# Snapshot cache timings (seconds)
CACHE_TTL = float(_cache_config.get("ttl_seconds", 30 * 60))
CACHE_SWEEP_INTERVAL = float(_cache_config.get("sweep_interval_seconds", 10 * 60))
CACHE_CHECK_INTERVAL = float(_cache_config.get("check_interval_seconds", 5))

# Default result limits for best-context and dead-code reports
DEFAULT_USAGE_LIMIT = int(_limits_config.get("usages", 3))
DEFAULT_TEST_USAGE_LIMIT = int(_limits_config.get("test_usages", 2))
DEFAULT_DEPENDENCY_LIMIT = int(_limits_config.get("dependencies", 5))
DEFAULT_DEAD_CODE_LIMIT = int(_limits_config.get("dead_code", 0)) or None
DEPENDENCY_FILE_SAMPLE = 3


def ensure_base_dirs() -> None:
    """Create the base directory for local configuration if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
