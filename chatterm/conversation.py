"""Ordered message storage with a bounded selection cursor."""

from __future__ import annotations

from dataclasses import dataclass, field

from .exceptions import SelectionError
from .message import Message


class FocusHooks:
    """Extension point invoked when the conversation view gains or loses focus.

    The default policy leaves the selection untouched in both directions.
    Subclasses may, for example, freeze selection changes while unfocused.
    """

    def on_focus(self, conversation: Conversation) -> None:
        return None

    def on_unfocus(self, conversation: Conversation) -> None:
        return None


@dataclass
class Conversation:
    """A chat session: ordered messages plus an optional selected index.

    ``selected_message`` is either ``None`` or a valid index into
    ``messages``, and is always ``None`` when there are no messages.
    """

    messages: list[Message] = field(default_factory=list)
    selected_message: int | None = None
    identifier: str | None = None
    focus_hooks: FocusHooks = field(default_factory=FocusHooks, repr=False, compare=False)

    def add_message(self, message: Message) -> None:
        """Append a message and select it."""
        self.messages.append(message)
        self.select_last_message()

    def replace_last_message(self, message: Message) -> bool:
        """Swap the final message for a newer version of the same message.

        Returns ``False`` without touching anything when the conversation is empty.
        """
        if not self.messages:
            return False
        self.messages[-1] = message
        self.select_last_message()
        return True

    def delete_selected_message(self) -> Message | None:
        """Remove the selected message and move the cursor back by one."""
        if self.selected_message is None:
            return None
        removed = self.messages.pop(self.selected_message)
        if not self.messages:
            self.selected_message = None
        else:
            self.selected_message = min(
                max(self.selected_message - 1, 0), len(self.messages) - 1
            )
        return removed

    def select_last_message(self) -> int | None:
        """Select the final message; ``None`` when there is nothing to select."""
        self.selected_message = len(self.messages) - 1 if self.messages else None
        return self.selected_message

    def select_next_message(self) -> None:
        if not self.messages:
            self.selected_message = None
        elif self.selected_message is None:
            self.selected_message = 0
        elif self.selected_message + 1 < len(self.messages):
            self.selected_message += 1

    def select_prev_message(self) -> None:
        if not self.messages:
            self.selected_message = None
        elif self.selected_message is None:
            self.selected_message = 0
        elif self.selected_message > 0:
            self.selected_message -= 1

    def get_selected_message(self) -> Message:
        """Return the selected message or raise :class:`SelectionError`."""
        index = self.selected_message
        if index is None or not 0 <= index < len(self.messages):
            raise SelectionError("Could not retrieve message: nothing selected.")
        return self.messages[index]

    def snapshot(self) -> list[Message]:
        """Return a copy of the history safe to hand to a background task."""
        return list(self.messages)

    def focus(self) -> None:
        self.focus_hooks.on_focus(self)

    def unfocus(self) -> None:
        self.focus_hooks.on_unfocus(self)
