"""Immutable chat message records and model references."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

DEFAULT_MODEL_OWNER = "library"


class Role(str, Enum):
    """Author of a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class MessageStatus(str, Enum):
    """Lifecycle marker for assistant messages produced by streaming."""

    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass(frozen=True)
class ModelRef:
    """Reference to a generative model as ``owner/name``."""

    owner: str
    name: str

    @classmethod
    def parse(cls, raw: str) -> ModelRef:
        """Parse ``owner/name`` or a bare ``name`` into a reference."""
        normalized = raw.strip()
        if not normalized:
            raise ValueError("Model reference must not be empty.")
        owner, sep, name = normalized.partition("/")
        if not sep:
            return cls(owner=DEFAULT_MODEL_OWNER, name=owner)
        if not owner or not name:
            raise ValueError(f"Invalid model reference {raw!r}.")
        return cls(owner=owner, name=name)

    @property
    def provider_name(self) -> str:
        """Name as the Ollama API expects it (no ``library/`` prefix)."""
        if self.owner == DEFAULT_MODEL_OWNER:
            return self.name
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class Message:
    """One turn of a conversation.

    Messages are never patched in place: streaming builds a fresh instance
    carrying the full accumulated content each time.
    """

    role: Role
    content: str = ""
    status: MessageStatus | None = None
    model: ModelRef | None = None

    def with_content(self, content: str) -> Message:
        return replace(self, content=content)

    def with_status(self, status: MessageStatus | None) -> Message:
        return replace(self, status=status)

    def to_dict(self) -> dict[str, Any]:
        """Return the persisted JSON shape of this message."""
        payload: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.status is not None:
            payload["status"] = self.status.value
        if self.model is not None:
            payload["model"] = str(self.model)
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Message:
        """Build a message from persisted data; raises ``ValueError`` when invalid."""
        role = Role(str(payload.get("role", "")).strip().lower())
        content = payload.get("content", "")
        if not isinstance(content, str):
            raise ValueError("Message content must be a string.")
        raw_status = payload.get("status")
        status = MessageStatus(raw_status) if raw_status else None
        raw_model = payload.get("model")
        model = ModelRef.parse(raw_model) if isinstance(raw_model, str) else None
        return cls(role=role, content=content, status=status, model=model)
