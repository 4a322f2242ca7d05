"""Single-line message input."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Input


class InputBox(Horizontal):
    """Input row; the field only takes focus in the active input mode."""

    DEFAULT_CSS = """
    InputBox {
        height: auto;
        border-top: solid $panel;
    }
    InputBox > #message_input {
        width: 1fr;
    }
    """

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Press i to type, Enter to send, Esc to leave", id="message_input")

    @property
    def field(self) -> Input:
        return self.query_one("#message_input", Input)
