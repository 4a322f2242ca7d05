"""Runtime-style tests for the real Textual app class."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
import logging
from pathlib import Path
import tempfile
import unittest

from textual.pilot import Pilot
from textual.widgets import Input

from chatterm.app import ChatTermApp
from chatterm.config import Config, LoggingConfig
from chatterm.conversation import Conversation
from chatterm.focus import Mode, ViewerState
from chatterm.message import Message, MessageStatus, ModelRef, Role
from chatterm.persistence import ConversationStore
from chatterm.provider import StreamEvent
from chatterm.screens import ModelPickerScreen

MODEL = ModelRef.parse("llama3.2")


class _RuntimeFakeProvider:
    def __init__(self) -> None:
        self.requests: list[list[Message]] = []

    async def begin(
        self, model: ModelRef, messages: Sequence[Message]
    ) -> tuple[MessageStatus, AsyncIterator[StreamEvent]]:
        self.requests.append(list(messages))
        return MessageStatus.PROCESSING, self._events()

    async def _events(self) -> AsyncIterator[StreamEvent]:
        yield StreamEvent(kind="text", data="Hel")
        yield StreamEvent(kind="text", data="lo")
        yield StreamEvent(kind="done")

    async def list_models(self) -> list[ModelRef]:
        return [MODEL, ModelRef.parse("qwen2.5")]


class AppRuntimeTests(unittest.IsolatedAsyncioTestCase):
    """Drive the real app through key presses."""

    def setUp(self) -> None:
        self._root_handlers = list(logging.getLogger().handlers)
        self._temp_dir = tempfile.TemporaryDirectory()
        self.store = ConversationStore(Path(self._temp_dir.name) / "conversations")
        self.provider = _RuntimeFakeProvider()

    def tearDown(self) -> None:
        logging.getLogger().handlers[:] = self._root_handlers
        self._temp_dir.cleanup()

    def _build_app(self) -> ChatTermApp:
        config = Config(logging=LoggingConfig(log_to_file=False))
        return ChatTermApp(config=config, provider=self.provider, store=self.store)

    async def _settle(self, app: ChatTermApp, pilot: Pilot) -> None:
        for _ in range(3):
            await pilot.pause()
            await app.dispatcher.drain()

    async def test_type_and_send_message(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            await pilot.press("i")
            await self._settle(app, pilot)
            self.assertEqual(app.dispatcher.mode, Mode.ACTIVE_INPUT)
            self.assertTrue(app.query_one("#message_input", Input).has_focus)

            await pilot.press("h", "i", "enter")
            await self._settle(app, pilot)

            messages = app.dispatcher.conversation.messages
            self.assertEqual([m.content for m in messages], ["hi", "Hello"])
            self.assertEqual(messages[1].model, MODEL)
            self.assertEqual(app.query_one("#message_input", Input).value, "")

            await pilot.press("escape")
            await self._settle(app, pilot)
            self.assertEqual(app.dispatcher.mode, Mode.INPUT)

    async def test_panel_cycling_changes_viewer_state(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            await pilot.press("tab")
            await self._settle(app, pilot)
            self.assertEqual(app.dispatcher.viewer_state, ViewerState.FOCUSED)

            await pilot.press("enter")
            await self._settle(app, pilot)
            self.assertEqual(app.dispatcher.viewer_state, ViewerState.ACTIVE)

            await pilot.press("escape")
            await self._settle(app, pilot)
            await pilot.press("tab")
            await self._settle(app, pilot)
            self.assertEqual(app.dispatcher.mode, Mode.INPUT)
            self.assertEqual(app.dispatcher.viewer_state, ViewerState.UNFOCUSED)

    async def test_save_registers_conversation_and_reload(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            await pilot.press("i")
            await self._settle(app, pilot)
            await pilot.press("h", "i", "enter")
            await self._settle(app, pilot)
            await pilot.press("escape")
            await self._settle(app, pilot)

            await app.action_save_conversation()
            await self._settle(app, pilot)
            identifier = app.dispatcher.conversation.identifier
            self.assertEqual(self.store.list_conversation_ids(), [identifier])
            self.assertEqual(app.manager.list_conversations(), [identifier])

            await pilot.press("n")
            await self._settle(app, pilot)
            self.assertEqual(app.dispatcher.conversation.messages, [])

            await pilot.press("]", "l")
            await self._settle(app, pilot)
            self.assertEqual(app.dispatcher.conversation.identifier, identifier)
            self.assertEqual(len(app.dispatcher.conversation.messages), 2)

    async def test_stored_conversations_listed_on_startup(self) -> None:
        self.store.save(Conversation(messages=[Message(Role.USER, "old")], identifier="earlier"))
        app = self._build_app()
        async with app.run_test() as pilot:
            await self._settle(app, pilot)
            self.assertEqual(app.manager.list_conversations(), ["earlier"])

    async def test_model_picker_selects_model(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            await pilot.press("m")
            await self._settle(app, pilot)
            self.assertIsInstance(app.screen, ModelPickerScreen)

            await pilot.press("down", "enter")
            await self._settle(app, pilot)
            self.assertEqual(app.dispatcher.model, ModelRef.parse("qwen2.5"))
            self.assertEqual(app.dispatcher.mode, Mode.INPUT)


if __name__ == "__main__":
    unittest.main()
