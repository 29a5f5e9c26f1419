"""
Settings Module for Tube Sort

User preferences for the solver and session budgets, kept in config.json in
the working directory. Values found in the file are merged over
DEFAULT_SETTINGS; anything unreadable or of the wrong type falls back to
its default.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

# Settings file location (working directory)
SETTINGS_FILE = Path("config.json")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "strategy_name": "bfs",
    "max_iterations": 250_000,
    "solver_timeout_sec": None,
    "enforce_move_limit": True,
    "enforce_time_limit": True,
    "progress_file": "progress.json",
    "debug_enabled": False,
}


def _valid(key: str, value: Any) -> bool:
    """Type check a single setting against its default."""
    if key == "solver_timeout_sec":
        return value is None or (isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0)
    if key == "max_iterations":
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
    return isinstance(value, type(DEFAULT_SETTINGS[key]))


def load_settings(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Read settings, merged over the defaults.

    Args:
        path: Settings file (SETTINGS_FILE when omitted)

    Returns:
        Complete settings dictionary; defaults when the file is missing or invalid
    """
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    result = DEFAULT_SETTINGS.copy()

    if not settings_file.exists():
        logger.debug(f"No settings file at {settings_file}, using defaults")
        return result

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            stored = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not read settings from {settings_file}: {e}, using defaults")
        return result

    if not isinstance(stored, dict):
        logger.warning(f"Settings in {settings_file} are not an object, using defaults")
        return result

    for key, value in stored.items():
        if key not in DEFAULT_SETTINGS:
            logger.debug(f"Ignoring unknown setting '{key}'")
        elif not _valid(key, value):
            logger.warning(f"Invalid value for '{key}': {value!r}, keeping {result[key]!r}")
        else:
            result[key] = value

    logger.debug(f"Settings: {result}")
    return result


def save_settings(settings: Dict[str, Any], path: Optional[Union[str, Path]] = None) -> None:
    """
    Write settings as JSON.

    Args:
        settings: Settings dictionary to store
        path: Settings file (SETTINGS_FILE when omitted)
    """
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    try:
        with open(settings_file, 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2)
        logger.debug(f"Settings written to {settings_file}")
    except OSError as e:
        logger.error(f"Could not write settings to {settings_file}: {e}")
