"""Navigation over known conversations and activation of one at a time."""

from __future__ import annotations

import logging
from typing import Protocol

from .conversation import Conversation
from .exceptions import ConversationLoadError
from .persistence import ConversationMeta, new_conversation_id

LOGGER = logging.getLogger(__name__)


class ConversationLoader(Protocol):
    def load(self, identifier: str) -> Conversation: ...


class ConversationManager:
    """Own the list of known conversations and the currently active one.

    Conversations are listed as :class:`ConversationMeta` handles and only
    materialized by :meth:`activate_selected_conversation`. Mutations of the
    active conversation are never written back by the manager.
    """

    def __init__(
        self,
        loader: ConversationLoader,
        conversations: list[ConversationMeta] | None = None,
    ) -> None:
        self.loader = loader
        self.conversations: list[ConversationMeta] = list(conversations or [])
        self.selected_conversation: int | None = None
        self.active_conversation = Conversation(identifier=new_conversation_id())

    def add_conversation(self, meta: ConversationMeta) -> None:
        """Register a conversation; the selection is left as it is.

        Saving a listed conversation again registers the same identifier, so a
        known identifier refreshes its entry in place.
        """
        for index, item in enumerate(self.conversations):
            if item.identifier == meta.identifier:
                self.conversations[index] = meta
                return
        self.conversations.append(meta)

    def list_conversations(self) -> list[str]:
        return [meta.label for meta in self.conversations]

    def select_next_conversation(self) -> None:
        if not self.conversations:
            self.selected_conversation = None
        elif self.selected_conversation is None:
            self.selected_conversation = 0
        elif self.selected_conversation + 1 < len(self.conversations):
            self.selected_conversation += 1

    def select_prev_conversation(self) -> None:
        if not self.conversations:
            self.selected_conversation = None
        elif self.selected_conversation is None:
            self.selected_conversation = 0
        elif self.selected_conversation > 0:
            self.selected_conversation -= 1

    def selected_meta(self) -> ConversationMeta | None:
        index = self.selected_conversation
        if index is None or not 0 <= index < len(self.conversations):
            return None
        return self.conversations[index]

    def activate_selected_conversation(self) -> Conversation:
        """Load the selected conversation and make it active.

        On failure the previously active conversation stays in place.

        Raises:
            ConversationLoadError: nothing is selected or loading failed.
        """
        meta = self.selected_meta()
        if meta is None:
            raise ConversationLoadError("No conversation selected.")
        conversation = self.loader.load(meta.identifier)
        self.active_conversation = conversation
        LOGGER.info(
            "manager.activate",
            extra={"event": "manager.activate", "conversation": meta.identifier},
        )
        return conversation

    def replace_active(self, conversation: Conversation) -> None:
        """Make ``conversation`` active without consulting storage."""
        self.active_conversation = conversation
