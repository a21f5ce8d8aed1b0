"""Tests for perf command composition and request validation."""

import os
import shlex
from pathlib import Path

import pytest

from perf_recorder.recording.composer import (
    CommandComposer,
    ComposedCommand,
    RecordRequest,
)
from perf_recorder.recording.errors import ElevationError, RecordingValidationError


@pytest.fixture
def composer():
    """Composer with a fake kdesu and a fixed user."""
    return CommandComposer(
        resolver=lambda: "/usr/bin/kdesu",
        username_provider=lambda: "alice",
        active_window=lambda: 77,
    )


@pytest.fixture
def program(tmp_path: Path) -> Path:
    """An executable script to record."""
    script = tmp_path / "app.sh"
    script.write_text("#!/bin/sh\nexit 0\n")
    script.chmod(0o755)
    return script


class TestValidateOutputPath:
    """Test output folder validation."""

    def test_existing_writable_folder(self, composer, tmp_path):
        composer.validate_output_path(str(tmp_path / "perf.data"))

    def test_missing_folder(self, composer, tmp_path):
        folder = tmp_path / "missing"
        with pytest.raises(RecordingValidationError) as exc:
            composer.validate_output_path(str(folder / "perf.data"))
        assert exc.value.reason == f"Folder '{folder}' does not exist."

    def test_folder_is_a_file(self, composer, tmp_path):
        not_a_dir = tmp_path / "file"
        not_a_dir.write_text("")
        with pytest.raises(RecordingValidationError, match="is not a folder"):
            composer.validate_output_path(str(not_a_dir / "perf.data"))

    @pytest.mark.skipif(os.geteuid() == 0, reason="root can write anywhere")
    def test_folder_not_writable(self, composer, tmp_path):
        folder = tmp_path / "ro"
        folder.mkdir()
        folder.chmod(0o555)
        try:
            with pytest.raises(RecordingValidationError, match="is not writable"):
                composer.validate_output_path(str(folder / "perf.data"))
        finally:
            folder.chmod(0o755)

    def test_relative_path_uses_current_folder(self, composer, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        composer.validate_output_path("perf.data")


class TestResolveExecutable:
    """Test executable resolution."""

    def test_absolute_path(self, composer, program):
        assert composer.resolve_executable(str(program)) == program

    def test_found_on_path(self, composer, program, monkeypatch):
        monkeypatch.setenv("PATH", str(program.parent))
        assert composer.resolve_executable("app.sh") == program

    def test_missing(self, composer, tmp_path, monkeypatch):
        monkeypatch.setenv("PATH", str(tmp_path))
        with pytest.raises(RecordingValidationError) as exc:
            composer.resolve_executable("no-such-program")
        assert exc.value.reason == "File 'no-such-program' does not exist."

    def test_directory(self, composer, tmp_path):
        with pytest.raises(RecordingValidationError, match="is not a file"):
            composer.resolve_executable(str(tmp_path))

    def test_not_executable(self, composer, tmp_path):
        data = tmp_path / "data.txt"
        data.write_text("hello")
        data.chmod(0o644)
        with pytest.raises(RecordingValidationError, match="is not executable"):
            composer.resolve_executable(str(data))


class TestTargets:
    """Test target option building."""

    def test_pid_target(self, composer):
        assert composer.pid_target(["12", "34"]) == ["--pid", "12,34"]

    def test_empty_pid_list(self, composer):
        with pytest.raises(RecordingValidationError, match="Process does not exist."):
            composer.pid_target([])

    def test_executable_target(self, composer, program):
        assert composer.executable_target(str(program), ["-x", "y"]) == [
            str(program),
            "-x",
            "y",
        ]


class TestCompose:
    """Test command composition."""

    def test_plain_pid_recording(self, composer, tmp_path):
        output = str(tmp_path / "out.data")
        request = RecordRequest.for_pids(["-e", "cycles"], output, False, ["1234"])

        command = composer.compose_request(request)

        assert command.binary == "perf"
        assert command.arguments == [
            "record",
            "-o",
            output,
            "-e",
            "cycles",
            "--pid",
            "1234",
        ]
        assert command.command_line == shlex.join(
            ["perf", "record", "-o", output, "-e", "cycles", "--pid", "1234"]
        )

    def test_plain_executable_recording(self, composer, tmp_path, program):
        output = str(tmp_path / "out.data")
        request = RecordRequest.for_executable(
            ["-g"], output, False, str(program), ["arg"], str(tmp_path)
        )

        command = composer.compose_request(request)

        assert command.binary == "perf"
        assert command.arguments == ["record", "-o", output, "-g", str(program), "arg"]
        assert command.working_directory == str(tmp_path)

    def test_elevated_recording(self, composer, tmp_path):
        output = str(tmp_path / "out.data")
        request = RecordRequest.for_pids(["-g"], output, True, [1, 2])

        command = composer.compose_request(request)

        assert command.binary == "/usr/bin/kdesu"
        assert command.arguments == [
            "-u",
            "root",
            "-t",
            "--attach",
            "77",
            "--",
            "perf",
            "record",
            "-o",
            output,
            "-g",
            "--",
            "runuser",
            "-u",
            "alice",
            "--",
            "--pid",
            "1,2",
        ]

    def test_elevated_keeps_working_directory(self, composer, tmp_path, program):
        request = RecordRequest.for_executable(
            [], str(tmp_path / "out.data"), True, str(program), [], str(tmp_path)
        )
        command = composer.compose_request(request)
        assert command.working_directory == str(tmp_path)
        assert command.arguments[-1] == str(program)

    def test_elevation_without_helper(self, tmp_path):
        composer = CommandComposer(
            resolver=lambda: None, username_provider=lambda: "alice"
        )
        request = RecordRequest.for_pids([], str(tmp_path / "out.data"), True, ["1"])
        with pytest.raises(ElevationError, match="No privilege elevation helper"):
            composer.compose_request(request)

    def test_elevation_without_username(self, tmp_path):
        composer = CommandComposer(
            resolver=lambda: "/usr/bin/gksu", username_provider=lambda: None
        )
        request = RecordRequest.for_pids([], str(tmp_path / "out.data"), True, ["1"])
        with pytest.raises(ElevationError, match="current user name"):
            composer.compose_request(request)

    def test_output_folder_checked_before_target(self, composer, tmp_path):
        """Test a bad folder is reported even when the pid list is empty too."""
        request = RecordRequest.for_pids([], str(tmp_path / "nope" / "x.data"), False, [])
        with pytest.raises(RecordingValidationError, match="does not exist"):
            composer.compose_request(request)

    def test_custom_perf_binary(self, tmp_path):
        composer = CommandComposer(perf_binary="/opt/perf/bin/perf")
        command = composer.compose(["-a"], str(tmp_path / "o"), False, ["--pid", "1"])
        assert command.argv[0] == "/opt/perf/bin/perf"


class TestComposedCommand:
    """Test ComposedCommand."""

    def test_command_line_quotes_arguments(self):
        command = ComposedCommand("perf", ["record", "-o", "/tmp/my file.data"])
        assert command.command_line == "perf record -o '/tmp/my file.data'"

    def test_argv(self):
        command = ComposedCommand("perf", ["record"])
        assert command.argv == ["perf", "record"]
