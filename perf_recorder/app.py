"""Textual application wrapping a single perf recording."""

from typing import Optional

from textual.app import App
from textual.binding import Binding

from .config.settings_manager import get_theme_setting
from .recording import PerfRecordController, RecordingEvent, RecordRequest
from .screens.record_screen import RecordScreen


class RecorderApp(App):
    """Runs one recording and shows its progress.

    The app's result is the terminal event of the recording, or None when
    the user quit before the recording ended.
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    TITLE = "perf-recorder"
    SUB_TITLE = "perf record front-end"

    def __init__(self, controller: PerfRecordController, request: RecordRequest):
        """Initialize the application.

        Args:
            controller: Controller that runs perf
            request: The recording to perform
        """
        super().__init__()
        self.theme = get_theme_setting()
        self.controller = controller
        self.request = request
        self.record_screen: Optional[RecordScreen] = None

    def on_mount(self) -> None:
        """Show the record screen, which starts the recording."""
        self.record_screen = RecordScreen(self.controller, self.request)
        self.push_screen(self.record_screen)

    @property
    def recording_result(self) -> Optional[RecordingEvent]:
        if self.record_screen is None:
            return None
        return self.record_screen.result

    async def action_quit(self) -> None:
        """Stop perf, then leave with the recording's outcome."""
        await self.controller.close()
        self.exit(self.recording_result)
