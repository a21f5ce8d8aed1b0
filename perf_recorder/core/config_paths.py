"""Centralized configuration path management for perf-recorder.

This module provides a single source of truth for all configuration and data
file paths, following XDG Base Directory specification.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def _xdg_dir(variable: str, fallback: Path) -> Path:
    value = os.environ.get(variable)
    if value and os.path.isabs(value):
        return Path(value)
    return fallback


class ConfigPaths:
    """Centralized configuration path management.

    Configuration lives in ~/.config/perf-recorder/ and recordings default to
    ~/.local/share/perf-recorder/.
    """

    APP_NAME = "perf-recorder"

    @classmethod
    def base_dir(cls) -> Path:
        """Configuration directory, without creating it."""
        return _xdg_dir("XDG_CONFIG_HOME", Path.home() / ".config") / cls.APP_NAME

    @classmethod
    def data_dir(cls) -> Path:
        """Data directory, without creating it."""
        return (
            _xdg_dir("XDG_DATA_HOME", Path.home() / ".local" / "share")
            / cls.APP_NAME
        )

    @classmethod
    def get_base_dir(cls) -> Path:
        """Get base configuration directory, creating if needed.

        Returns:
            Path to ~/.config/perf-recorder/
        """
        base = cls.base_dir()
        base.mkdir(parents=True, exist_ok=True)
        return base

    @classmethod
    def get_config_file(cls) -> Path:
        """Get path to main configuration file.

        Returns:
            Path to config.json
        """
        return cls.get_base_dir() / "config.json"

    @classmethod
    def get_log_file(cls) -> Path:
        """Get path to the log file used while the TUI owns the terminal.

        Returns:
            Path to perf-recorder.log
        """
        return cls.get_base_dir() / "perf-recorder.log"

    @classmethod
    def get_recordings_dir(cls) -> Path:
        """Get the default directory for perf.data files.

        Returns:
            Path to ~/.local/share/perf-recorder/
        """
        recordings_dir = cls.data_dir()
        try:
            recordings_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            # the recorder reports the unusable folder itself
            logger.warning(f"Could not create {recordings_dir}: {e}")
        return recordings_dir
