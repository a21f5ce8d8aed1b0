"""Centralized settings management for perf-recorder.

Settings Schema:
    {
        "perf_binary": str,             # perf executable name or path
        "elevation_helpers": [str],     # helper names, in preference order
        "kill_timeout": float,          # seconds to wait after killing perf
        "output_path": str,             # default perf.data location
        "theme": str,                   # Textual theme name
    }

The PERF_RECORDER_PERF_BINARY environment variable overrides perf_binary.
"""

import json
import logging
import os
from typing import Any, Dict, List

from perf_recorder.core.config_paths import ConfigPaths
from perf_recorder.recording.composer import DEFAULT_PERF_BINARY
from perf_recorder.recording.controller import DEFAULT_KILL_TIMEOUT
from perf_recorder.recording.elevation import KNOWN_HELPERS

LOGGER = logging.getLogger(__name__)

PERF_BINARY_ENV = "PERF_RECORDER_PERF_BINARY"

DEFAULT_OUTPUT_NAME = "perf.data"

# Default theme if none is saved
DEFAULT_THEME = "textual-dark"

# Valid Textual theme names (all built-in themes)
VALID_THEMES = {
    "textual-dark",
    "textual-light",
    "nord",
    "gruvbox",
    "dracula",
    "tokyo-night",
    "monokai",
    "solarized-light",
    "textual-ansi",
}


def load_config_data() -> Dict[str, Any]:
    """Loads configuration data from config.json."""
    config_file = ConfigPaths.get_config_file()
    if not config_file.exists():
        return {}
    try:
        content = config_file.read_text(encoding="utf-8")
        if not content.strip():
            return {}
        data = json.loads(content)
    except (json.JSONDecodeError, IOError) as e:
        LOGGER.warning(
            f"Failed to load config file: {e}. Using empty configuration.",
            exc_info=True,
        )
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("Config file does not contain an object, ignoring it")
        return {}
    return data


def _save_config_data(data: Dict[str, Any]) -> None:
    """Saves the configuration data to config.json."""
    config_file = ConfigPaths.get_config_file()
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(json.dumps(data, indent=4), encoding="utf-8")
    except IOError as e:
        LOGGER.error(f"Failed to save config file: {e}", exc_info=True)


def get_setting(key: str, default: Any = None) -> Any:
    """Retrieve a setting from the config file."""
    data = load_config_data()
    return data.get(key, default)


def set_settings(updates: Dict[str, Any]) -> None:
    """Load existing settings, apply updates, and save back."""
    data = load_config_data()
    data.update(updates)
    _save_config_data(data)


def get_perf_binary() -> str:
    """perf executable, from the environment or the config file."""
    override = os.environ.get(PERF_BINARY_ENV)
    if override:
        return override
    value = get_setting("perf_binary", DEFAULT_PERF_BINARY)
    if not isinstance(value, str) or not value.strip():
        LOGGER.warning(f"Invalid perf_binary setting {value!r}, using default")
        return DEFAULT_PERF_BINARY
    return value


def get_elevation_helpers() -> List[str]:
    """Elevation helper names to search for, in preference order."""
    value = get_setting("elevation_helpers")
    if value is None:
        return list(KNOWN_HELPERS)
    if not isinstance(value, list) or not all(
        isinstance(item, str) and item for item in value
    ):
        LOGGER.warning(f"Invalid elevation_helpers setting {value!r}, using default")
        return list(KNOWN_HELPERS)
    return value


def get_kill_timeout() -> float:
    """Seconds to wait for perf to exit after being killed."""
    value = get_setting("kill_timeout", DEFAULT_KILL_TIMEOUT)
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        timeout = -1.0
    if timeout <= 0:
        LOGGER.warning(f"Invalid kill_timeout setting {value!r}, using default")
        return DEFAULT_KILL_TIMEOUT
    return timeout


def get_default_output_path() -> str:
    """Where perf.data goes when no output path is given."""
    value = get_setting("output_path")
    if isinstance(value, str) and value.strip():
        return os.path.expanduser(value)
    return str(ConfigPaths.get_recordings_dir() / DEFAULT_OUTPUT_NAME)


def validate_theme(theme: str) -> bool:
    """Check if a theme name is valid.

    Args:
        theme: Theme name to validate

    Returns:
        True if theme is a valid Textual theme name
    """
    return theme in VALID_THEMES


def get_theme_setting() -> str:
    """Retrieve the saved theme setting, falling back to default.

    Returns:
        A valid theme name. If the saved theme is invalid, returns DEFAULT_THEME.
    """
    theme = get_setting("theme", DEFAULT_THEME)
    return theme if validate_theme(theme) else DEFAULT_THEME
