"""Configuration manager for symnav using TOML files."""

from __future__ import annotations

import logging
from typing import Any, Dict, Union

import toml

from .config import BASE_DIR

logger = logging.getLogger(__name__)

CONFIG_FILE = BASE_DIR / "config.toml"

# Section -> settings it accepts
SECTIONS = {
    "cache": ("ttl_seconds", "sweep_interval_seconds", "check_interval_seconds"),
    "limits": ("usages", "test_usages", "dependencies", "dead_code"),
}


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", CONFIG_FILE, exc)
        return {}


def _save_full_config(config: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
    try:
        with open(CONFIG_FILE, "w") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.error("Could not write %s: %s", CONFIG_FILE, exc)
        return False


def load_cache_config() -> Dict[str, Any]:
    """Load snapshot cache timings from the ``[cache]`` section.

    Returns:
        Dict with any of ``ttl_seconds``, ``sweep_interval_seconds`` and
        ``check_interval_seconds``, or an empty dict.
    """
    return load_full_config().get("cache", {})


def load_limits_config() -> Dict[str, Any]:
    """Load default result limits from the ``[limits]`` section."""
    return load_full_config().get("limits", {})


def parse_value(text: str) -> Union[int, float, str]:
    """Interpret a command-line value as int, then float, else keep the string."""
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return text


def save_setting(section: str, key: str, value: Any) -> bool:
    """Set a single ``section.key`` value, preserving the rest of the file.

    Args:
        section: One of ``SECTIONS``
        key: Setting name inside the section
        value: New value (numbers are stored as numbers)

    Returns:
        True if saved successfully, False otherwise
    """
    if section not in SECTIONS:
        raise ValueError(f"Unknown config section: {section}")
    if key not in SECTIONS[section]:
        raise ValueError(f"Unknown setting {section}.{key}; expected one of {', '.join(SECTIONS[section])}")
    config = load_full_config()
    config.setdefault(section, {})[key] = value
    return _save_full_config(config)
