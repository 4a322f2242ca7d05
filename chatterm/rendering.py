"""Turn a conversation snapshot into wrapped, width-bounded display lines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
import textwrap

from .conversation import Conversation
from .message import Message, Role

ROLE_LABELS = {Role.SYSTEM: "System", Role.USER: "User", Role.ASSISTANT: "Assistant"}


@dataclass(frozen=True)
class RenderedLine:
    text: str
    kind: Literal["header", "body", "separator"]
    message_index: int
    role: Role


def message_header(message: Message) -> str:
    header = ROLE_LABELS[message.role]
    if message.role is Role.ASSISTANT and message.model is not None:
        header += f": ({message.model.owner}/{message.model.name})"
    if message.status is not None:
        header += f" [{message.status.value}]"
    return header


def wrap_content(content: str, width: int) -> list[str]:
    """Wrap each newline-separated line independently, keeping blank lines."""
    lines: list[str] = []
    for raw_line in content.split("\n"):
        wrapped = textwrap.wrap(raw_line, width=width, break_long_words=True, replace_whitespace=False)
        lines.extend(wrapped or [""])
    return lines


def render_conversation(conversation: Conversation, width: int) -> list[RenderedLine]:
    """Render every message as header, wrapped body and a dashed separator.

    ``width`` is the outer box width; two columns are reserved for borders.
    """
    inner = max(1, width - 2)
    rendered: list[RenderedLine] = []
    for index, message in enumerate(conversation.messages):
        rendered.append(RenderedLine(message_header(message), "header", index, message.role))
        for line in wrap_content(message.content, inner):
            rendered.append(RenderedLine(line, "body", index, message.role))
        rendered.append(RenderedLine("-" * inner, "separator", index, message.role))
    return rendered
