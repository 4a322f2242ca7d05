"""Action events consumed by the dispatcher.

``Action`` is a closed union: new behaviour is added by defining a new
variant here and handling it in :meth:`ActionDispatcher.dispatch`.
"""

from __future__ import annotations

from dataclasses import dataclass

from .focus import Mode
from .message import Message, ModelRef
from .persistence import ConversationMeta


@dataclass(frozen=True)
class ReceiveMessage:
    """A new message appended to the active conversation; pipelines tag it with their session."""

    message: Message
    session_id: int | None = None


@dataclass(frozen=True)
class StreamMessage:
    """Newer version of the last message; ``session_id`` names the producing stream."""

    message: Message
    session_id: int | None = None


@dataclass(frozen=True)
class SendMessage:
    message: Message
    model: ModelRef | None = None


@dataclass(frozen=True)
class SelectNextMessage:
    pass


@dataclass(frozen=True)
class SelectPreviousMessage:
    pass


@dataclass(frozen=True)
class DeleteSelectedMessage:
    pass


@dataclass(frozen=True)
class SwitchMode:
    mode: Mode


@dataclass(frozen=True)
class SelectNextConversation:
    pass


@dataclass(frozen=True)
class SelectPreviousConversation:
    pass


@dataclass(frozen=True)
class LoadSelectedConversation:
    pass


@dataclass(frozen=True)
class AddConversationToManager:
    meta: ConversationMeta


@dataclass(frozen=True)
class NewConversation:
    pass


@dataclass(frozen=True)
class SelectModel:
    model: ModelRef | None


@dataclass(frozen=True)
class ShowStatus:
    text: str


@dataclass(frozen=True)
class Quit:
    pass


Action = (
    ReceiveMessage
    | StreamMessage
    | SendMessage
    | SelectNextMessage
    | SelectPreviousMessage
    | DeleteSelectedMessage
    | SwitchMode
    | SelectNextConversation
    | SelectPreviousConversation
    | LoadSelectedConversation
    | AddConversationToManager
    | NewConversation
    | SelectModel
    | ShowStatus
    | Quit
)
