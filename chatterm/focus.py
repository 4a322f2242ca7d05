"""Input modes and the conversation viewer focus state machine."""

from __future__ import annotations

from enum import Enum
import logging

from .conversation import Conversation

LOGGER = logging.getLogger(__name__)


class Mode(str, Enum):
    """Which panel is authoritative for keystrokes."""

    VIEWER = "viewer"
    ACTIVE_VIEWER = "active_viewer"
    MODEL_SELECTOR = "model_selector"
    INPUT = "input"
    ACTIVE_INPUT = "active_input"


class ViewerState(str, Enum):
    """Rendering emphasis of the conversation viewer."""

    UNFOCUSED = "unfocused"
    FOCUSED = "focused"
    ACTIVE = "active"


class FocusStateMachine:
    """Map mode switches onto viewer states. Every mode has a defined target."""

    def __init__(self, state: ViewerState = ViewerState.UNFOCUSED) -> None:
        self.state = state

    def switch_mode(self, mode: Mode, conversation: Conversation) -> ViewerState:
        """Apply a mode switch and fire the conversation focus hooks."""
        match mode:
            case Mode.VIEWER:
                self.state = ViewerState.FOCUSED
                conversation.unfocus()
            case Mode.ACTIVE_VIEWER:
                self.state = ViewerState.ACTIVE
                conversation.focus()
            case Mode.MODEL_SELECTOR:
                self.state = ViewerState.UNFOCUSED
                conversation.unfocus()
            case Mode.INPUT | Mode.ACTIVE_INPUT:
                self.state = ViewerState.UNFOCUSED
        LOGGER.debug(
            "focus.transition",
            extra={"event": "focus.transition", "mode": mode.value, "state": self.state.value},
        )
        return self.state
