"""Screen that runs one perf recording and streams its output."""

import logging
from typing import Optional

import pyperclip
from rich.text import Text
from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Input, RichLog, Static

from ..recording import (
    Failed,
    Finished,
    Output,
    PerfRecordController,
    RecordingEvent,
    RecordRequest,
    Started,
)
from ..ui.status_footer import StatusFooter

LOGGER = logging.getLogger(__name__)


class RecordScreen(Screen):
    """Shows perf's output while it records."""

    CSS = """
    RecordScreen {
        layout: vertical;
    }

    #command-line {
        height: auto;
        padding: 0 1;
        background: $panel;
        color: $text;
    }

    #output-container {
        height: 1fr;
        padding: 1 1 0 1;
    }

    #output-log {
        height: 100%;
        border: solid $primary;
        border-title-align: center;
        padding: 0 1;
        background: $surface;
    }

    #stdin-input {
        width: 100%;
        margin: 0 1 1 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+s", "stop_recording", "Stop", priority=True),
        Binding("ctrl+y", "copy_command", "Copy Command", priority=True),
    ]

    def __init__(self, controller: PerfRecordController, request: RecordRequest):
        """Initialize the record screen.

        Args:
            controller: Controller whose events this screen displays
            request: Recording to start once the screen is mounted
        """
        super().__init__()
        self.controller = controller
        self.controller.on_event = self.handle_event
        self.request = request
        self.result: Optional[RecordingEvent] = None
        self.output_log: Optional[RichLog] = None
        self._partial_line = ""

    def compose(self) -> ComposeResult:
        """Create child widgets for the record screen."""
        yield Static("", id="command-line")

        with Container(id="output-container"):
            log = RichLog(
                id="output-log",
                wrap=True,
                highlight=False,
                markup=False,
                auto_scroll=True,
            )
            log.border_title = "perf record"
            yield log

        yield Input(placeholder="Send input to the process...", id="stdin-input")
        yield StatusFooter(id="status-footer")

    def on_mount(self) -> None:
        """Start the recording."""
        self.output_log = self.query_one("#output-log", RichLog)
        footer = self.query_one(StatusFooter)
        footer.output_path = self.request.output_path
        self.run_worker(self.controller.start(self.request), exclusive=True)

    async def handle_event(self, event: RecordingEvent) -> None:
        """Display a controller event."""
        footer = self.query_one(StatusFooter)
        if event.event_type.is_terminal:
            self._flush_output()

        if isinstance(event, Started):
            self.query_one("#command-line", Static).update(
                self.controller.current_command_line()
            )
            footer.state = "recording"
        elif isinstance(event, Output):
            self._write_output(event.text)
        elif isinstance(event, Finished):
            self.result = event
            footer.state = "finished"
            self.output_log.write(
                Text(f"Recording saved to {event.artifact_path}", style="bold green")
            )
        elif isinstance(event, Failed):
            self.result = event
            footer.state = "failed"
            self.output_log.write(Text(event.reason, style="bold red"))
            self.notify(event.reason, title="Recording failed", severity="error")

        if event.event_type.is_terminal:
            LOGGER.info(f"Recording ended: {event.to_dict()}")

    def _write_output(self, text: str) -> None:
        """Write complete lines, holding back a trailing partial line."""
        lines = (self._partial_line + text).split("\n")
        self._partial_line = lines.pop()
        for line in lines:
            self.output_log.write(Text(line))

    def _flush_output(self) -> None:
        if self._partial_line:
            self.output_log.write(Text(self._partial_line))
            self._partial_line = ""

    def action_stop_recording(self) -> None:
        """Ask perf to stop."""
        if not self.controller.is_running:
            self.notify("Nothing is recording", title="Info", severity="information")
            return
        self.query_one(StatusFooter).state = "stopping"
        self.controller.stop()

    def action_copy_command(self) -> None:
        """Copy the perf command line to the clipboard."""
        command_line = self.controller.current_command_line()
        if not command_line:
            self.notify("No command to copy", title="Info", severity="information")
            return
        try:
            pyperclip.copy(command_line)
            self.notify("Copied command line to clipboard", title="Success")
        except pyperclip.PyperclipException as e:
            self.notify(f"Failed to copy: {e}", title="Error", severity="error")

    @on(Input.Submitted, "#stdin-input")
    async def on_stdin_submitted(self, event: Input.Submitted) -> None:
        """Forward a line of input to the process."""
        event.input.value = ""
        if not self.controller.is_running:
            self.notify("The process is not running", severity="warning")
            return
        await self.controller.send_input(f"{event.value}\n".encode("utf-8"))
