"""Directory-backed conversation storage, one JSON file per conversation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import json
import logging
import os
from pathlib import Path
from typing import Any
from uuid import uuid4

from .conversation import Conversation
from .exceptions import ConversationLoadError
from .message import Message

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationMeta:
    """Lightweight handle for a known conversation that is not loaded yet."""

    identifier: str
    path: Path | None = None
    title: str = ""

    @property
    def label(self) -> str:
        return self.title or self.identifier


def new_conversation_id() -> str:
    """Return a sortable identifier such as ``20260101-120000-1a2b3c4d``."""
    return f"{datetime.now(UTC).strftime('%Y%m%d-%H%M%S')}-{uuid4().hex[:8]}"


class ConversationStore:
    """Read and write conversation snapshots under a single directory."""

    SUFFIX = ".json"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory).expanduser()

    def _enforce_permissions(self, path: Path, mode: int = 0o600) -> None:
        """Set POSIX permissions on a file or directory; silently ignores failures."""
        if os.name != "posix":
            return
        try:
            path.chmod(mode)
        except OSError:
            pass

    def _ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._enforce_permissions(self.directory, 0o700)

    def _path_for(self, identifier: str) -> Path:
        candidate = (self.directory / f"{identifier}{self.SUFFIX}").resolve(strict=False)
        base = self.directory.resolve(strict=False)
        try:
            candidate.relative_to(base)
        except ValueError as exc:
            raise ConversationLoadError(
                f"Conversation id {identifier!r} escapes the conversation directory."
            ) from exc
        return candidate

    def list_conversation_ids(self) -> list[str]:
        """Return identifiers of every stored conversation, sorted."""
        if not self.directory.is_dir():
            return []
        return sorted(
            path.stem
            for path in self.directory.iterdir()
            if path.is_file() and path.suffix == self.SUFFIX
        )

    def list_conversations(self) -> list[ConversationMeta]:
        return [
            ConversationMeta(identifier=identifier, path=self.directory / f"{identifier}{self.SUFFIX}")
            for identifier in self.list_conversation_ids()
        ]

    def load(self, identifier: str) -> Conversation:
        """Materialize a stored conversation.

        Raises:
            ConversationLoadError: the file is missing, unreadable or malformed.
        """
        path = self._path_for(identifier)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConversationLoadError(f"Conversation {identifier!r} does not exist.") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise ConversationLoadError(f"Unable to read conversation {identifier!r}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConversationLoadError(f"Conversation {identifier!r} is not valid JSON.") from exc

        messages = self._decode_messages(identifier, payload)
        LOGGER.info(
            "persistence.load",
            extra={"event": "persistence.load", "conversation": identifier, "messages": len(messages)},
        )
        return Conversation(messages=messages, identifier=identifier)

    @staticmethod
    def _decode_messages(identifier: str, payload: Any) -> list[Message]:
        if not isinstance(payload, dict) or not isinstance(payload.get("messages"), list):
            raise ConversationLoadError(f"Conversation {identifier!r} payload is invalid.")
        messages: list[Message] = []
        for item in payload["messages"]:
            if not isinstance(item, dict):
                raise ConversationLoadError(f"Conversation {identifier!r} has a malformed message.")
            try:
                messages.append(Message.from_dict(item))
            except ValueError as exc:
                raise ConversationLoadError(
                    f"Conversation {identifier!r} has a malformed message: {exc}"
                ) from exc
        return messages

    def save(self, conversation: Conversation) -> ConversationMeta:
        """Write a snapshot of ``conversation``, assigning an id when unsaved."""
        self._ensure_directory()
        identifier = conversation.identifier or new_conversation_id()
        target = self._path_for(identifier)
        payload = {
            "saved_at": datetime.now(UTC).isoformat(),
            "messages": [message.to_dict() for message in conversation.messages],
        }
        target.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        self._enforce_permissions(target)
        LOGGER.info(
            "persistence.save",
            extra={"event": "persistence.save", "conversation": identifier},
        )
        return ConversationMeta(identifier=identifier, path=target)
