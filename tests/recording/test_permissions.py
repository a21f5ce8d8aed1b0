"""Tests for artifact ownership repair."""

from unittest.mock import Mock, patch

import pytest

from perf_recorder.recording.permissions import ensure_readable


@pytest.fixture
def artifact(tmp_path):
    path = tmp_path / "perf.data"
    path.write_bytes(b"PERFILE2")
    return str(path)


def _providers(helper="/usr/bin/kdesu", username="alice", group="staff"):
    return {
        "resolver": lambda: helper,
        "username_provider": lambda: username,
        "group_provider": lambda: group,
        "active_window": lambda: 99,
    }


class TestEnsureReadable:
    """Test ensure_readable function."""

    def test_readable_file_needs_nothing(self, artifact):
        """Test no process is spawned for an already readable file."""
        runner = Mock()
        resolver = Mock()

        assert ensure_readable(artifact, resolver=resolver, runner=runner) is True
        runner.assert_not_called()
        resolver.assert_not_called()

    def test_chown_makes_file_readable(self, artifact):
        """Test chown runs once through the helper and the result is rechecked."""
        readable = iter([False, True])
        runner = Mock(return_value=Mock(returncode=0))

        with patch(
            "perf_recorder.recording.permissions.is_readable",
            side_effect=lambda path: next(readable),
        ):
            result = ensure_readable(artifact, runner=runner, **_providers())

        assert result is True
        runner.assert_called_once()
        command = runner.call_args.args[0]
        assert command == [
            "/usr/bin/kdesu",
            "-u",
            "root",
            "-t",
            "--attach",
            "99",
            "--",
            "chown",
            "alice:staff",
            artifact,
        ]

    def test_chown_did_not_help(self, artifact):
        """Test False when the file is still unreadable after chown."""
        runner = Mock(return_value=Mock(returncode=1))

        with patch(
            "perf_recorder.recording.permissions.is_readable", return_value=False
        ):
            result = ensure_readable(
                artifact, runner=runner, **_providers(helper="/usr/bin/gksu")
            )

        assert result is False
        runner.assert_called_once()
        assert runner.call_args.args[0][:4] == ["/usr/bin/gksu", "-u", "root", "--"]

    def test_no_helper(self, artifact):
        """Test False without running anything when no helper exists."""
        runner = Mock()

        with patch(
            "perf_recorder.recording.permissions.is_readable", return_value=False
        ):
            result = ensure_readable(artifact, runner=runner, **_providers(helper=None))

        assert result is False
        runner.assert_not_called()

    def test_no_username(self, artifact):
        """Test False without running anything when the user is unknown."""
        runner = Mock()

        with patch(
            "perf_recorder.recording.permissions.is_readable", return_value=False
        ):
            result = ensure_readable(
                artifact, runner=runner, **_providers(username=None)
            )

        assert result is False
        runner.assert_not_called()

    def test_helper_fails_to_launch(self, artifact):
        """Test an OSError from the helper is reported as failure."""
        runner = Mock(side_effect=PermissionError("denied"))

        with patch(
            "perf_recorder.recording.permissions.is_readable", return_value=False
        ):
            result = ensure_readable(artifact, runner=runner, **_providers())

        assert result is False
