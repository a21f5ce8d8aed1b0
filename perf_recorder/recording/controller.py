"""Lifecycle management for a single perf record process."""

import asyncio
import codecs
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .composer import CommandComposer, ComposedCommand, RecordRequest
from .errors import RecordingValidationError
from .events import Failed, Finished, Output, RecordingEvent, Started
from .outcome import classify_outcome, normalize_exit_code
from .permissions import ensure_readable

LOGGER = logging.getLogger(__name__)

DEFAULT_KILL_TIMEOUT = 1.0
READ_CHUNK_SIZE = 4096

UNREADABLE_REASON = "Unable to make data file readable."

EventHandler = Callable[[RecordingEvent], Any]


@dataclass
class RecordingSession:
    """State of the one recording a controller owns."""

    output_path: str
    command: ComposedCommand
    elevate: bool
    process: Optional[asyncio.subprocess.Process] = None
    watcher: Optional["asyncio.Task[None]"] = None
    user_terminated: bool = False
    terminal_sent: bool = False

    @property
    def is_running(self) -> bool:
        return self.process is not None and self.process.returncode is None


class PerfRecordController:
    """Runs perf record and reports what happens to it.

    Events are delivered in order through ``on_event``, which may be a plain
    function or a coroutine function. Every session ends with exactly one
    Finished or Failed event. Starting a new recording kills the previous
    one first; its remaining events are dropped.

    Handlers must not await ``start()`` or ``close()``: both hold the
    controller's lifecycle lock while events are delivered.
    """

    def __init__(
        self,
        on_event: EventHandler,
        composer: Optional[CommandComposer] = None,
        readable_check: Callable[[str], bool] = ensure_readable,
        kill_timeout: float = DEFAULT_KILL_TIMEOUT,
    ):
        """Initialize the controller.

        Args:
            on_event: Receives Started, Output, Finished and Failed events
            composer: Builds and validates command lines
            readable_check: Blocking check that repairs artifact ownership
            kill_timeout: Seconds to wait for a killed process to go away
        """
        self.on_event = on_event
        self.composer = composer or CommandComposer()
        self.readable_check = readable_check
        self.kill_timeout = kill_timeout
        self._session: Optional[RecordingSession] = None
        self._last_command: Optional[ComposedCommand] = None
        self._lock: Optional[asyncio.Lock] = None

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    @property
    def is_running(self) -> bool:
        return self._session is not None and self._session.is_running

    async def record_pids(
        self,
        options: Sequence[str],
        output_path: str,
        elevate: bool,
        pids: Sequence,
    ) -> None:
        """Attach perf to already running processes."""
        await self.start(RecordRequest.for_pids(options, output_path, elevate, pids))

    async def record_executable(
        self,
        options: Sequence[str],
        output_path: str,
        elevate: bool,
        executable: str,
        executable_args: Sequence[str] = (),
        working_directory: Optional[str] = None,
    ) -> None:
        """Launch a program under perf."""
        await self.start(
            RecordRequest.for_executable(
                options,
                output_path,
                elevate,
                executable,
                executable_args,
                working_directory,
            )
        )

    async def start(self, request: RecordRequest) -> None:
        """Start a recording, replacing any existing one.

        Rejected requests are reported with a Failed event; this never raises.
        Overlapping calls run one after the other, so at most one perf
        process is alive per controller.
        """
        async with self._lifecycle_lock():
            await self._start(request)

    async def _start(self, request: RecordRequest) -> None:
        await self._discard_session()

        try:
            command = self.composer.compose_request(request)
        except RecordingValidationError as e:
            LOGGER.info(f"Recording request rejected: {e.reason}")
            await self._dispatch(Failed(e.reason))
            return

        session = RecordingSession(
            output_path=request.output_path,
            command=command,
            elevate=request.elevate,
        )
        self._session = session
        self._last_command = command

        LOGGER.info(f"Starting recording: {command.command_line}")
        await self._emit(session, Started(command.binary, list(command.arguments)))

        try:
            process = await asyncio.create_subprocess_exec(
                *command.argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=command.working_directory,
            )
        except OSError as e:
            await self._process_error(
                session, f"Failed to start {command.binary}: {e.strerror or e}"
            )
            return

        session.process = process
        if session is not self._session:
            LOGGER.info(f"Recording replaced while starting, killing pid {process.pid}")
            await self._kill(process)
            return

        session.watcher = asyncio.create_task(self._watch(session))

    def stop(self) -> None:
        """Ask perf to stop. Does not wait for it to exit."""
        session = self._session
        if session is None:
            return
        session.user_terminated = True
        if session.is_running:
            LOGGER.info(f"Terminating pid {session.process.pid}")
            try:
                session.process.terminate()
            except ProcessLookupError:
                pass

    async def send_input(self, data: bytes) -> None:
        """Write raw bytes to perf's stdin.

        Raises:
            RuntimeError: If no recording process is running
        """
        session = self._session
        if session is None or not session.is_running:
            raise RuntimeError("No recording is running")

        try:
            session.process.stdin.write(data)
            await session.process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            await self._process_error(
                session, f"Failed to write to {session.command.binary}: {e}"
            )

    def current_command_line(self) -> str:
        """Display form of the last launched command, or an empty string."""
        if self._last_command is None:
            return ""
        return self._last_command.command_line

    async def wait_finished(self) -> None:
        """Wait until the current session's process has been handled."""
        session = self._session
        if session is not None and session.watcher is not None:
            await asyncio.gather(session.watcher, return_exceptions=True)

    async def close(self) -> None:
        """Stop the recording, giving perf a moment to finish its file.

        A recording that exits within ``kill_timeout`` still gets its
        Finished or Failed event.
        """
        async with self._lifecycle_lock():
            session = self._session
            if session is None:
                return
            self.stop()
            if session.watcher is not None and not session.watcher.done():
                _, pending = await asyncio.wait(
                    {session.watcher}, timeout=self.kill_timeout
                )
                if pending:
                    LOGGER.warning("perf did not exit after SIGTERM, killing it")
            await self._discard_session()

    def _lifecycle_lock(self) -> asyncio.Lock:
        # created lazily so the lock belongs to the loop that uses it
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def _discard_session(self) -> None:
        """Kill and forget the current session."""
        session = self._session
        if session is None:
            return
        self._session = None

        if session.watcher is not None:
            session.watcher.cancel()

        if session.process is not None:
            await self._kill(session.process)

        if session.watcher is not None:
            await asyncio.gather(session.watcher, return_exceptions=True)

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        LOGGER.info(f"Killing recording process (pid {process.pid})")
        try:
            process.kill()
        except ProcessLookupError:
            pass
        try:
            await asyncio.wait_for(process.wait(), self.kill_timeout)
        except asyncio.TimeoutError:
            LOGGER.warning(f"pid {process.pid} did not exit after SIGKILL")

    async def _watch(self, session: RecordingSession) -> None:
        """Forward output until EOF, then classify the exit."""
        process = session.process
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

        while True:
            chunk = await process.stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            text = decoder.decode(chunk)
            if text:
                await self._emit(session, Output(text))

        tail = decoder.decode(b"", final=True)
        if tail:
            await self._emit(session, Output(tail))

        returncode = await process.wait()
        await self._on_exit(session, normalize_exit_code(returncode))

    async def _on_exit(self, session: RecordingSession, exit_code: int) -> None:
        LOGGER.info(f"{session.command.binary} exited with code {exit_code}")

        if session.terminal_sent:
            # a process error already ended this session
            session.user_terminated = False
            return

        outcome = classify_outcome(
            exit_code, session.output_path, session.user_terminated
        )
        if not outcome.success:
            await self._finish(session, Failed(outcome.reason))
            return

        readable = await asyncio.to_thread(self.readable_check, session.output_path)
        if readable:
            await self._finish(session, Finished(session.output_path))
        else:
            await self._finish(session, Failed(UNREADABLE_REASON))

    async def _process_error(self, session: RecordingSession, reason: str) -> None:
        if session.user_terminated:
            # terminating the process causes these, they are expected
            LOGGER.debug(f"Ignoring error after stop request: {reason}")
            return
        LOGGER.error(reason)
        await self._finish(session, Failed(reason))

    async def _finish(self, session: RecordingSession, event: RecordingEvent) -> None:
        if session.terminal_sent:
            return
        session.terminal_sent = True
        await self._emit(session, event)
        session.user_terminated = False

    async def _emit(self, session: RecordingSession, event: RecordingEvent) -> None:
        if session is not self._session:
            LOGGER.debug(f"Dropping {event.event_type.value} event of a discarded session")
            return
        await self._dispatch(event)

    async def _dispatch(self, event: RecordingEvent) -> None:
        try:
            result = self.on_event(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            LOGGER.error(
                f"Event handler failed for {event.event_type.value} event",
                exc_info=True,
            )
