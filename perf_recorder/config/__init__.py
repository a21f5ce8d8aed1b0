"""Configuration utilities for perf-recorder."""

from .settings_manager import (
    get_setting,
    set_settings,
    load_config_data,
    get_perf_binary,
    get_elevation_helpers,
    get_kill_timeout,
    get_default_output_path,
    get_theme_setting,
    validate_theme,
    DEFAULT_THEME,
    PERF_BINARY_ENV,
    VALID_THEMES,
)

__all__ = [
    "get_setting",
    "set_settings",
    "load_config_data",
    "get_perf_binary",
    "get_elevation_helpers",
    "get_kill_timeout",
    "get_default_output_path",
    "get_theme_setting",
    "validate_theme",
    "DEFAULT_THEME",
    "PERF_BINARY_ENV",
    "VALID_THEMES",
]
