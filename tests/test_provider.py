"""Tests for the Ollama completion provider adapter."""

from __future__ import annotations

from collections.abc import AsyncIterator
import unittest

import httpx

from chatterm.exceptions import ModelNotFoundError, ProviderConnectionError, StreamingError
from chatterm.message import Message, MessageStatus, ModelRef, Role
from chatterm.provider import OllamaCompletionProvider, StreamEvent


def _chunk(text: str | None, done: bool = False) -> dict:
    return {"message": {"role": "assistant", "content": text}, "done": done}


async def _chunk_stream(chunks: list[dict], error: Exception | None = None) -> AsyncIterator[dict]:
    for chunk in chunks:
        yield chunk
    if error is not None:
        raise error


class FakeClient:
    """Minimal stand-in for ``ollama.AsyncClient``."""

    def __init__(
        self,
        chunks: list[dict] | None = None,
        stream_error: Exception | None = None,
        chat_error: Exception | None = None,
        models: object = None,
    ) -> None:
        self.chunks = chunks or []
        self.stream_error = stream_error
        self.chat_error = chat_error
        self.models = models
        self.calls: list[dict] = []

    async def chat(self, model: str, messages: list[dict], stream: bool) -> AsyncIterator[dict]:
        self.calls.append({"model": model, "messages": messages, "stream": stream})
        if self.chat_error is not None:
            raise self.chat_error
        return _chunk_stream(self.chunks, self.stream_error)

    async def list(self) -> object:
        if isinstance(self.models, Exception):
            raise self.models
        return self.models


async def _collect(events: AsyncIterator[StreamEvent]) -> list[StreamEvent]:
    return [event async for event in events]


class OllamaCompletionProviderTests(unittest.IsolatedAsyncioTestCase):
    """Validate request shape, event translation and error mapping."""

    model = ModelRef.parse("llama3.2")

    def _provider(self, client: FakeClient) -> OllamaCompletionProvider:
        return OllamaCompletionProvider(host="http://localhost:11434", client=client)

    async def test_begin_sends_history_and_translates_chunks(self) -> None:
        client = FakeClient(chunks=[_chunk("Hel"), _chunk(""), _chunk("lo"), _chunk(None, done=True)])
        provider = self._provider(client)
        history = [Message(Role.SYSTEM, "sys"), Message(Role.USER, "hi")]

        status, events = await provider.begin(self.model, history)
        collected = await _collect(events)

        self.assertEqual(status, MessageStatus.PROCESSING)
        self.assertEqual(
            collected,
            [StreamEvent("text", "Hel"), StreamEvent("text", "lo"), StreamEvent("done")],
        )
        self.assertEqual(
            client.calls[0],
            {
                "model": "llama3.2",
                "messages": [
                    {"role": "system", "content": "sys"},
                    {"role": "user", "content": "hi"},
                ],
                "stream": True,
            },
        )

    async def test_owned_model_keeps_owner_prefix(self) -> None:
        client = FakeClient(chunks=[_chunk("x", done=True)])
        await _collect((await self._provider(client).begin(ModelRef("me", "tiny"), []))[1])
        self.assertEqual(client.calls[0]["model"], "me/tiny")

    async def test_stream_without_done_flag_still_finishes(self) -> None:
        client = FakeClient(chunks=[_chunk("a")])
        _status, events = await self._provider(client).begin(self.model, [])
        self.assertEqual(await _collect(events), [StreamEvent("text", "a"), StreamEvent("done")])

    async def test_connect_error_maps_to_connection_error(self) -> None:
        client = FakeClient(chat_error=httpx.ConnectError("refused"))
        with self.assertRaises(ProviderConnectionError):
            await self._provider(client).begin(self.model, [])

    async def test_missing_model_maps_to_model_not_found(self) -> None:
        client = FakeClient(chat_error=RuntimeError("model 'llama3.2' not found"))
        with self.assertRaises(ModelNotFoundError):
            await self._provider(client).begin(self.model, [])

    async def test_mid_stream_failure_maps_to_streaming_error(self) -> None:
        client = FakeClient(chunks=[_chunk("Hel")], stream_error=RuntimeError("reset by peer"))
        _status, events = await self._provider(client).begin(self.model, [])
        received: list[StreamEvent] = []
        with self.assertRaises(StreamingError):
            async for event in events:
                received.append(event)
        self.assertEqual(received, [StreamEvent("text", "Hel")])

    async def test_list_models_reads_model_names(self) -> None:
        client = FakeClient(models={"models": [{"model": "llama3.2:latest"}, {"name": "me/tiny"}]})
        models = await self._provider(client).list_models()
        self.assertEqual(models, [ModelRef("library", "llama3.2:latest"), ModelRef("me", "tiny")])

    async def test_list_models_failure_raises_connection_error(self) -> None:
        client = FakeClient(models=httpx.ConnectError("refused"))
        with self.assertRaises(ProviderConnectionError):
            await self._provider(client).list_models()


if __name__ == "__main__":
    unittest.main()
