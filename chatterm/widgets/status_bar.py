"""Status bar showing mode, model, in-flight streams and the last status text."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.widgets import Label, Static


class StatusBar(Static):
    """Render compact runtime status information.

    Segments (left to right):
        Mode: input  |  Model: library/llama3.2  |  Streams: 1  |  <status>
    """

    DEFAULT_CSS = """
    StatusBar {
        layout: horizontal;
        height: auto;
        padding: 0 1;
    }
    StatusBar Label {
        margin-right: 1;
    }
    StatusBar #status_text {
        color: $text-muted;
    }
    """

    def compose(self) -> ComposeResult:
        yield Label("Mode: -", id="status_mode")
        yield Label("|")
        yield Label("Model: -", id="status_model")
        yield Label("|")
        yield Label("Streams: 0", id="status_streams")
        yield Label("|")
        yield Label("", id="status_text")

    def set_status(self, *, mode: str, model: str, streams: int, text: str) -> None:
        self.query_one("#status_mode", Label).update(f"Mode: {mode}")
        self.query_one("#status_model", Label).update(f"Model: {model}")
        self.query_one("#status_streams", Label).update(f"Streams: {streams}")
        self.query_one("#status_text", Label).update(text)
