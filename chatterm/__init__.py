"""Top-level package for chatterm-tui."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import ChatTermApp
    from .config import Config, ensure_config_dir, load_config
    from .conversation import Conversation
    from .dispatcher import ActionDispatcher
    from .exceptions import (
        ChatTermError,
        ConfigValidationError,
        ConversationLoadError,
        ModelNotConfiguredError,
        ModelNotFoundError,
        ProviderConnectionError,
        SelectionError,
        StreamingError,
    )
    from .focus import FocusStateMachine, Mode, ViewerState
    from .manager import ConversationManager
    from .message import Message, MessageStatus, ModelRef, Role
    from .persistence import ConversationMeta, ConversationStore
    from .pipeline import StreamingCompletionPipeline
    from .provider import OllamaCompletionProvider

# Symbol -> submodule; resolved on first access so the core imports without Textual.
_EXPORTS: dict[str, str] = {
    "ActionDispatcher": "dispatcher",
    "ChatTermApp": "app",
    "ChatTermError": "exceptions",
    "Config": "config",
    "ConfigValidationError": "exceptions",
    "Conversation": "conversation",
    "ConversationLoadError": "exceptions",
    "ConversationManager": "manager",
    "ConversationMeta": "persistence",
    "ConversationStore": "persistence",
    "FocusStateMachine": "focus",
    "Message": "message",
    "MessageStatus": "message",
    "Mode": "focus",
    "ModelNotConfiguredError": "exceptions",
    "ModelNotFoundError": "exceptions",
    "ModelRef": "message",
    "OllamaCompletionProvider": "provider",
    "ProviderConnectionError": "exceptions",
    "Role": "message",
    "SelectionError": "exceptions",
    "StreamingCompletionPipeline": "pipeline",
    "StreamingError": "exceptions",
    "ViewerState": "focus",
    "ensure_config_dir": "config",
    "load_config": "config",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> Any:
    """Lazily import exported symbols from their submodules."""
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(f".{module_name}", __name__), name)
