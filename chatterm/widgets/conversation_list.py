"""List of known conversations with the selection cursor highlighted."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.widgets import Static


class ConversationList(Static):
    """Show conversation labels; the selected entry is highlighted."""

    DEFAULT_CSS = """
    ConversationList {
        width: 32;
        height: 1fr;
        border: thick $panel;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__("", **kwargs)
        self.border_title = " Load Conversation "

    @staticmethod
    def build_text(labels: list[str], selected: int | None) -> Text:
        text = Text()
        if not labels:
            text.append("No saved conversations", style="dim")
            return text
        for index, label in enumerate(labels):
            text.append(f"{label}\n", style="italic on grey23" if index == selected else None)
        text.rstrip()
        return text

    def show(self, labels: list[str], selected: int | None) -> None:
        self.update(self.build_text(labels, selected))
