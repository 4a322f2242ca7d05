"""Scrollable viewer for the active conversation."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Static

from ..conversation import Conversation
from ..focus import ViewerState
from ..rendering import RenderedLine, render_conversation

DEFAULT_COLORS: dict[str, str] = {
    "active_color": "#e0af68",
    "focused_color": "#7aa2f7",
    "unfocused_color": "#565f89",
    "system_color": "#bb9af7",
    "user_color": "#7dcfff",
    "assistant_color": "#9ece6a",
}

SELECTED_STYLE = "italic on grey23"


class ConversationViewer(VerticalScroll):
    """Render wrapped messages with the selected one highlighted.

    The border colour follows the viewer focus state.
    """

    DEFAULT_CSS = """
    ConversationViewer {
        height: 1fr;
        border: thick $panel;
        background: black;
    }
    ConversationViewer > #conversation-body {
        height: auto;
    }
    """

    def __init__(self, colors: dict[str, str] | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.colors = {**DEFAULT_COLORS, **(colors or {})}
        self.lines: list[RenderedLine] = []
        self.border_title = " Conversation "

    def compose(self) -> ComposeResult:
        yield Static("", id="conversation-body")

    def build_text(self, lines: list[RenderedLine], selected: int | None) -> Text:
        text = Text()
        for line in lines:
            style = ""
            if line.kind == "header":
                style = f"bold {self.colors[f'{line.role.value}_color']}"
            elif line.kind == "separator":
                style = "dim"
            if line.message_index == selected:
                style = f"{style} {SELECTED_STYLE}".strip()
            text.append(f"{line.text}\n", style=style or None)
        text.rstrip()
        return text

    def show(self, conversation: Conversation, state: ViewerState) -> None:
        """Re-render from a conversation snapshot."""
        width = self.size.width or 80
        self.lines = render_conversation(conversation, width)
        self.styles.border = ("thick", self.colors[f"{state.value}_color"])
        body = self.query_one("#conversation-body", Static)
        body.update(self.build_text(self.lines, conversation.selected_message))
        if conversation.selected_message == len(conversation.messages) - 1:
            self.scroll_end(animate=False)
