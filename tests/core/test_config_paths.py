"""Tests for configuration path management."""

from pathlib import Path

import pytest

from perf_recorder.core.config_paths import ConfigPaths


@pytest.fixture
def xdg_dirs(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return tmp_path


class TestConfigPaths:
    """Test ConfigPaths."""

    def test_config_file_location(self, xdg_dirs):
        config_file = ConfigPaths.get_config_file()
        assert config_file == xdg_dirs / "config" / "perf-recorder" / "config.json"
        assert config_file.parent.is_dir()

    def test_log_file_location(self, xdg_dirs):
        assert ConfigPaths.get_log_file().name == "perf-recorder.log"

    def test_recordings_dir_created(self, xdg_dirs):
        recordings = ConfigPaths.get_recordings_dir()
        assert recordings == xdg_dirs / "data" / "perf-recorder"
        assert recordings.is_dir()

    def test_relative_xdg_value_ignored(self, monkeypatch):
        """Test a relative XDG_CONFIG_HOME falls back to ~/.config."""
        monkeypatch.setenv("XDG_CONFIG_HOME", "relative/dir")
        assert ConfigPaths.base_dir() == Path.home() / ".config" / "perf-recorder"

    def test_unwritable_data_dir(self, tmp_path, monkeypatch):
        """Test a data dir that cannot be created is still returned."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        monkeypatch.setenv("XDG_DATA_HOME", str(blocker))
        assert ConfigPaths.get_recordings_dir() == blocker / "perf-recorder"
