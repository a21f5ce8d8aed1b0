"""Validation and command line composition for perf record."""

import os
import shlex
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .elevation import (
    KNOWN_HELPERS,
    ActiveWindowQuery,
    HelperResolver,
    build_elevation_prefix,
    current_username,
    query_active_window,
    resolve_elevation_helper,
)
from .errors import ElevationError, RecordingValidationError

DEFAULT_PERF_BINARY = "perf"


@dataclass
class RecordRequest:
    """A single capture request.

    Exactly one of ``pids`` and ``executable`` is set.
    """

    options: List[str]
    output_path: str
    elevate: bool = False
    pids: Optional[List[str]] = None
    executable: Optional[str] = None
    executable_args: List[str] = field(default_factory=list)
    working_directory: Optional[str] = None

    @classmethod
    def for_pids(
        cls, options: Sequence[str], output_path: str, elevate: bool, pids: Sequence
    ) -> "RecordRequest":
        return cls(
            options=list(options),
            output_path=output_path,
            elevate=elevate,
            pids=[str(pid) for pid in pids],
        )

    @classmethod
    def for_executable(
        cls,
        options: Sequence[str],
        output_path: str,
        elevate: bool,
        executable: str,
        executable_args: Sequence[str] = (),
        working_directory: Optional[str] = None,
    ) -> "RecordRequest":
        return cls(
            options=list(options),
            output_path=output_path,
            elevate=elevate,
            executable=executable,
            executable_args=list(executable_args),
            working_directory=working_directory or None,
        )


@dataclass(frozen=True)
class ComposedCommand:
    """The binary and arguments that will actually be launched."""

    binary: str
    arguments: List[str]
    working_directory: Optional[str] = None

    @property
    def argv(self) -> List[str]:
        return [self.binary, *self.arguments]

    @property
    def command_line(self) -> str:
        """Shell-quoted form for display."""
        return shlex.join(self.argv)


class CommandComposer:
    """Turns a RecordRequest into the command line to run.

    All validation happens here so that nothing is launched for a request
    that cannot succeed.
    """

    def __init__(
        self,
        perf_binary: str = DEFAULT_PERF_BINARY,
        resolver: Optional[HelperResolver] = None,
        username_provider: Callable[[], Optional[str]] = current_username,
        active_window: ActiveWindowQuery = query_active_window,
        helper_names: Sequence[str] = KNOWN_HELPERS,
    ):
        """Initialize the composer.

        Args:
            perf_binary: perf executable name or path
            resolver: Callable locating the elevation helper
            username_provider: Callable returning the invoking user's login
            active_window: Callable returning the window id for kdesu
            helper_names: Helper names tried by the default resolver
        """
        self.perf_binary = perf_binary
        self.helper_names = tuple(helper_names)
        self.resolver = resolver or (
            lambda: resolve_elevation_helper(self.helper_names)
        )
        self.username_provider = username_provider
        self.active_window = active_window

    def compose_request(self, request: RecordRequest) -> ComposedCommand:
        """Validate a request and compose its command.

        Raises:
            RecordingValidationError: If the request cannot be launched
        """
        # the output folder is checked first, like perf itself would
        self.validate_output_path(request.output_path)

        if request.executable is not None:
            target = self.executable_target(
                request.executable, request.executable_args
            )
        else:
            target = self.pid_target(request.pids or [])

        return self.compose(
            request.options,
            request.output_path,
            request.elevate,
            target,
            request.working_directory,
        )

    def validate_output_path(self, output_path: str) -> None:
        """Check that the artifact's folder exists and is writable."""
        folder = os.path.dirname(output_path) or "."
        if not os.path.exists(folder):
            raise RecordingValidationError(f"Folder '{folder}' does not exist.")
        if not os.path.isdir(folder):
            raise RecordingValidationError(f"'{folder}' is not a folder.")
        if not os.access(folder, os.W_OK):
            raise RecordingValidationError(f"Folder '{folder}' is not writable.")

    def resolve_executable(self, exe_path: str) -> Path:
        """Resolve an executable against the filesystem, then PATH."""
        path = Path(exe_path).expanduser()
        if not path.exists():
            found = shutil.which(exe_path)
            if found:
                path = Path(found)

        if not path.exists():
            raise RecordingValidationError(f"File '{exe_path}' does not exist.")
        if not path.is_file():
            raise RecordingValidationError(f"'{exe_path}' is not a file.")
        if not os.access(path, os.X_OK):
            raise RecordingValidationError(f"File '{exe_path}' is not executable.")
        return path.absolute()

    def pid_target(self, pids: Sequence[str]) -> List[str]:
        if not pids:
            raise RecordingValidationError("Process does not exist.")
        return ["--pid", ",".join(str(pid) for pid in pids)]

    def executable_target(self, exe_path: str, exe_args: Sequence[str]) -> List[str]:
        return [str(self.resolve_executable(exe_path)), *exe_args]

    def compose(
        self,
        options: Sequence[str],
        output_path: str,
        elevate: bool,
        target: Sequence[str],
        working_directory: Optional[str] = None,
    ) -> ComposedCommand:
        """Compose the perf command, optionally wrapped in the elevation helper.

        Args:
            options: Pass-through perf record options
            output_path: Artifact path given to ``-o``
            elevate: Whether to run perf as root
            target: ``--pid`` options or the executable and its arguments
            working_directory: Directory the process is started in

        Returns:
            The command to launch
        """
        perf_args = ["record", "-o", output_path, *options]

        if not elevate:
            return ComposedCommand(
                binary=self.perf_binary,
                arguments=[*perf_args, *target],
                working_directory=working_directory,
            )

        helper = self.resolver()
        if not helper:
            raise ElevationError(
                "No privilege elevation helper found "
                f"(tried: {', '.join(self.helper_names)})."
            )
        username = self.username_provider()
        if not username:
            raise ElevationError("Unable to determine the current user name.")

        arguments = build_elevation_prefix(helper, self.active_window)
        arguments += ["--", self.perf_binary, *perf_args]
        # perf runs as root, the profiled program keeps the user's identity
        arguments += ["--", "runuser", "-u", username, "--"]
        arguments += target

        return ComposedCommand(
            binary=helper,
            arguments=arguments,
            working_directory=working_directory,
        )
