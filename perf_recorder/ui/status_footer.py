"""Status footer showing the recording state, output file and key shortcuts."""

from pathlib import Path

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Label

STATE_STYLES = {
    "idle": "dim",
    "recording": "bold yellow",
    "stopping": "bold yellow",
    "finished": "bold green",
    "failed": "bold red",
}


class StatusFooter(Widget):
    """Footer displaying the recording state, output path and shortcuts."""

    DEFAULT_CSS = """
    StatusFooter {
        dock: bottom;
        height: 1;
        background: $footer-background;
        color: $footer-foreground;
        layout: horizontal;
    }

    StatusFooter > #recording-info {
        width: 1fr;
        height: 1;
        padding: 0 1;
        color: $footer-description-foreground;
        background: $footer-description-background;
    }

    StatusFooter > #shortcuts {
        width: auto;
        height: 1;
        layout: horizontal;
    }

    StatusFooter .shortcut-key {
        color: $footer-key-foreground;
        background: $footer-key-background;
        text-style: bold;
        padding: 0 1;
    }

    StatusFooter .shortcut-desc {
        color: $footer-description-foreground;
        background: $footer-description-background;
        padding: 0 1 0 0;
    }

    StatusFooter .shortcut-separator {
        color: $footer-foreground;
        background: $footer-background;
        padding: 0 1;
    }
    """

    state = reactive("idle")
    """Recording state: idle, recording, stopping, finished or failed."""

    output_path = reactive("")
    """Artifact path of the current recording."""

    def _format_path(self, path: str) -> str:
        """Format a path for display, replacing home directory with ~.

        Args:
            path: The path to format.

        Returns:
            Formatted path string.
        """
        home = str(Path.home())
        if path.startswith(home):
            return "~" + path[len(home) :]
        return path

    def compose(self) -> ComposeResult:
        """Create child widgets for the status footer."""
        yield Label("", id="recording-info")

        with Horizontal(id="shortcuts"):
            yield Label("^S", classes="shortcut-key")
            yield Label("Stop", classes="shortcut-desc")
            yield Label("│", classes="shortcut-separator")
            yield Label("^Y", classes="shortcut-key")
            yield Label("Copy Command", classes="shortcut-desc")
            yield Label("│", classes="shortcut-separator")
            yield Label("^Q", classes="shortcut-key")
            yield Label("Quit", classes="shortcut-desc")

    def on_mount(self) -> None:
        """Update the footer when mounted."""
        self._update_info()

    def render_info(self) -> Text:
        """Build the left-hand status text."""
        text = Text()
        text.append(self.state.upper(), style=STATE_STYLES.get(self.state, "bold"))
        if self.output_path:
            text.append("  ", style="dim")
            text.append(self._format_path(self.output_path), style="bold")
        return text

    def _update_info(self) -> None:
        self.query_one("#recording-info", Label).update(self.render_info())

    def _watch_state(self, new_state: str) -> None:
        if self.is_mounted:
            self._update_info()

    def _watch_output_path(self, new_path: str) -> None:
        if self.is_mounted:
            self._update_info()
