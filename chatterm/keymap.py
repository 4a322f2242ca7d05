"""Translate key presses into actions according to the current mode."""

from __future__ import annotations

from typing import Any

from .actions import (
    Action,
    DeleteSelectedMessage,
    LoadSelectedConversation,
    NewConversation,
    Quit,
    SelectNextConversation,
    SelectNextMessage,
    SelectPreviousConversation,
    SelectPreviousMessage,
    SwitchMode,
)
from .focus import Mode

Keymap = dict[Mode, dict[str, Action]]


def _panel_bindings(keybinds: dict[str, str], other_panel: Mode) -> dict[Any, Action]:
    return {
        keybinds["cycle_panel"]: SwitchMode(other_panel),
        keybinds["model_selector"]: SwitchMode(Mode.MODEL_SELECTOR),
        keybinds["next_conversation"]: SelectNextConversation(),
        keybinds["previous_conversation"]: SelectPreviousConversation(),
        keybinds["load_conversation"]: LoadSelectedConversation(),
        keybinds["new_conversation"]: NewConversation(),
        keybinds["quit"]: Quit(),
    }


def build_keymap(keybinds: Any) -> Keymap:
    """Build the per-mode key table from a ``KeybindsConfig`` or mapping.

    Blank key names are skipped. ``MODEL_SELECTOR`` has no entries because
    the picker screen owns the keyboard while it is open.
    """
    if hasattr(keybinds, "model_dump"):
        keybinds = keybinds.model_dump()

    raw: Keymap = {
        Mode.INPUT: {
            keybinds["activate"]: SwitchMode(Mode.ACTIVE_INPUT),
            keybinds["edit"]: SwitchMode(Mode.ACTIVE_INPUT),
            **_panel_bindings(keybinds, Mode.VIEWER),
        },
        Mode.ACTIVE_INPUT: {keybinds["leave"]: SwitchMode(Mode.INPUT)},
        Mode.VIEWER: {
            keybinds["activate"]: SwitchMode(Mode.ACTIVE_VIEWER),
            **_panel_bindings(keybinds, Mode.INPUT),
        },
        Mode.ACTIVE_VIEWER: {
            "down": SelectNextMessage(),
            "up": SelectPreviousMessage(),
            keybinds["next_message"]: SelectNextMessage(),
            keybinds["previous_message"]: SelectPreviousMessage(),
            keybinds["delete_message"]: DeleteSelectedMessage(),
            keybinds["leave"]: SwitchMode(Mode.VIEWER),
        },
        Mode.MODEL_SELECTOR: {},
    }
    return {mode: {key: action for key, action in table.items() if key} for mode, table in raw.items()}


def resolve_key(keymap: Keymap, mode: Mode, key: str) -> Action | None:
    """Return the action bound to ``key`` in ``mode``, if any."""
    return keymap.get(mode, {}).get(key)
