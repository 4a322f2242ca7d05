"""Completion provider interface and its Ollama-backed implementation."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
import logging
from typing import Any, Literal, Protocol

import httpx
from ollama import AsyncClient

from .exceptions import (
    ChatTermError,
    ModelNotFoundError,
    ProviderConnectionError,
    StreamingError,
)
from .message import Message, MessageStatus, ModelRef

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamEvent:
    """One event from a completion stream; ``done`` terminates the stream."""

    kind: Literal["text", "done"]
    data: str = ""


class CompletionProvider(Protocol):
    """Collaborator that turns a message history into a stream of text events."""

    async def begin(
        self, model: ModelRef, messages: Sequence[Message]
    ) -> tuple[MessageStatus, AsyncIterator[StreamEvent]]: ...

    async def list_models(self) -> list[ModelRef]: ...


class OllamaCompletionProvider:
    """Stream chat completions from an Ollama host.

    Transport failures surface as :class:`StreamingError` subclasses raised
    from :meth:`begin` or from iterating the returned stream. No retries are
    attempted here.
    """

    def __init__(self, host: str, timeout: int = 120, client: Any | None = None) -> None:
        self.host = host
        self.timeout = timeout
        self._client = client if client is not None else AsyncClient(host=host, timeout=timeout)

    @staticmethod
    def _request_messages(messages: Sequence[Message]) -> list[dict[str, str]]:
        return [{"role": message.role.value, "content": message.content} for message in messages]

    @staticmethod
    def _chunk_field(chunk: Any, name: str) -> Any:
        """Read ``name`` from an SDK response object or its dict form."""
        value = getattr(chunk, name, None)
        if value is not None:
            return value
        if isinstance(chunk, dict):
            return chunk.get(name)
        return None

    @classmethod
    def _chunk_text(cls, chunk: Any) -> str:
        message = cls._chunk_field(chunk, "message")
        if message is None:
            return ""
        content = cls._chunk_field(message, "content")
        return content if isinstance(content, str) else ""

    def _map_exception(self, exc: Exception, model: ModelRef) -> ChatTermError:
        if isinstance(exc, ChatTermError):
            return exc
        if isinstance(
            exc,
            (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout, httpx.NetworkError),
        ):
            return ProviderConnectionError(f"Unable to connect to Ollama host {self.host}.")
        lower_message = str(exc).lower()
        if "model" in lower_message and ("not found" in lower_message or "404" in lower_message):
            return ModelNotFoundError(f"Model {str(model)!r} was not found on {self.host}.")
        return StreamingError(f"Failed to stream response from {self.host}: {exc}")

    async def begin(
        self, model: ModelRef, messages: Sequence[Message]
    ) -> tuple[MessageStatus, AsyncIterator[StreamEvent]]:
        """Start a streamed chat request for ``model`` over ``messages``."""
        LOGGER.info(
            "provider.begin",
            extra={"event": "provider.begin", "model": str(model), "messages": len(messages)},
        )
        try:
            stream = await self._client.chat(
                model=model.provider_name,
                messages=self._request_messages(messages),
                stream=True,
            )
        except Exception as exc:  # noqa: BLE001 - external API can fail in many ways.
            raise self._map_exception(exc, model) from exc
        return MessageStatus.PROCESSING, self._events(stream, model)

    async def _events(self, stream: Any, model: ModelRef) -> AsyncIterator[StreamEvent]:
        try:
            async for chunk in stream:
                text = self._chunk_text(chunk)
                if text:
                    yield StreamEvent(kind="text", data=text)
                if self._chunk_field(chunk, "done"):
                    yield StreamEvent(kind="done")
                    return
        except Exception as exc:  # noqa: BLE001
            raise self._map_exception(exc, model) from exc
        yield StreamEvent(kind="done")

    async def list_models(self) -> list[ModelRef]:
        """Return models installed on the Ollama host."""
        try:
            response = await self._client.list()
        except Exception as exc:  # noqa: BLE001
            raise ProviderConnectionError(f"Unable to list models on {self.host}: {exc}") from exc
        models = self._chunk_field(response, "models") or []
        refs: list[ModelRef] = []
        for item in models:
            for key in ("model", "name"):
                value = self._chunk_field(item, key)
                if isinstance(value, str) and value.strip():
                    refs.append(ModelRef.parse(value))
                    break
        return refs
