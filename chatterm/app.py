"""Textual application wiring the dispatcher to the terminal."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.events import Key
from textual.widgets import Header, Input

from .actions import (
    Action,
    AddConversationToManager,
    Quit,
    SelectModel,
    SendMessage,
    ShowStatus,
    SwitchMode,
)
from .config import Config, load_config
from .conversation import Conversation
from .dispatcher import ActionDispatcher
from .exceptions import ChatTermError
from .focus import Mode
from .keymap import build_keymap, resolve_key
from .logging_utils import configure_logging
from .manager import ConversationManager
from .message import Message, ModelRef, Role
from .persistence import ConversationStore
from .provider import CompletionProvider, OllamaCompletionProvider
from .screens import ModelPickerScreen
from .widgets import ConversationList, ConversationViewer, InputBox, StatusBar

LOGGER = logging.getLogger(__name__)


class ChatTermApp(App[None]):
    """Keyboard-driven chat client.

    Every key press is translated into an action and handed to the
    :class:`ActionDispatcher`; widgets are redrawn from dispatcher state after
    each applied action and never mutate it themselves.
    """

    CSS = """
    Screen {
        layout: vertical;
    }

    #app-root {
        height: 1fr;
    }

    #panels {
        height: 1fr;
    }
    """

    # Focus traversal would steal the panel-cycling key from the keymap.
    BINDINGS = [
        Binding("tab", "press_key('tab')", show=False, priority=True),
        Binding("shift+tab", "press_key('shift+tab')", show=False, priority=True),
    ]

    AUTO_FOCUS = None

    def __init__(
        self,
        config: Config | None = None,
        provider: CompletionProvider | None = None,
        store: ConversationStore | None = None,
    ) -> None:
        self.config = config or load_config()
        configure_logging(self.config.logging)
        super().__init__()
        self.title = self.config.app.title
        self.store = store or ConversationStore(self.config.conversations.directory)
        self.provider = provider or OllamaCompletionProvider(
            host=self.config.provider.host,
            timeout=self.config.provider.timeout,
        )
        self.manager = ConversationManager(self.store)
        self.dispatcher = ActionDispatcher(
            self.manager,
            self.provider,
            model=self.config.provider.model_ref(),
            queue_size=self.config.dispatcher.queue_size,
        )
        self.dispatcher.add_listener(self._on_action_applied)
        self.keymap = build_keymap(self.config.keybinds)
        self._save_key = self.config.keybinds.save_conversation
        self._dispatcher_task: asyncio.Task[None] | None = None
        self._picker_open = False
        self._w_viewer: ConversationViewer | None = None
        self._w_list: ConversationList | None = None
        self._w_input: Input | None = None
        self._w_status: StatusBar | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="app-root"):
            with Horizontal(id="panels"):
                yield ConversationList(id="conversation_list")
                yield ConversationViewer(colors=self.config.ui.model_dump(), id="conversation")
            yield InputBox(id="input_box")
            yield StatusBar(id="status_bar")

    async def on_mount(self) -> None:
        """Start the dispatcher loop and register stored conversations."""
        self._w_viewer = self.query_one(ConversationViewer)
        self._w_list = self.query_one(ConversationList)
        self._w_input = self.query_one("#message_input", Input)
        self._w_status = self.query_one(StatusBar)
        self._dispatcher_task = asyncio.create_task(self.dispatcher.run(), name="dispatcher")
        LOGGER.info("app.mount", extra={"event": "app.mount"})

        try:
            stored = await asyncio.to_thread(self.store.list_conversations)
        except OSError as exc:
            LOGGER.warning(
                "app.conversations.list_failed",
                extra={"event": "app.conversations.list_failed", "error": str(exc)},
            )
            await self.dispatcher.send(ShowStatus(f"Unable to list conversations: {exc}"))
            stored = []
        for meta in stored:
            await self.dispatcher.send(AddConversationToManager(meta))
        self._refresh_views()

    async def on_unmount(self) -> None:
        """Cancel in-flight completions and stop the dispatcher loop."""
        await self.dispatcher.shutdown()
        task = self._dispatcher_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        LOGGER.info("app.unmount", extra={"event": "app.unmount"})

    def _refresh_views(self) -> None:
        dispatcher = self.dispatcher
        if self._w_viewer is not None:
            self._w_viewer.show(dispatcher.conversation, dispatcher.viewer_state)
        if self._w_list is not None:
            self._w_list.show(self.manager.list_conversations(), self.manager.selected_conversation)
        if self._w_status is not None:
            self._w_status.set_status(
                mode=dispatcher.mode.value,
                model=str(dispatcher.model) if dispatcher.model else "none",
                streams=dispatcher.active_sessions,
                text=dispatcher.status_message,
            )

    def _sync_input_focus(self) -> None:
        field = self._w_input
        if field is None:
            return
        if self.dispatcher.mode is Mode.ACTIVE_INPUT:
            if not field.has_focus:
                field.focus()
        elif field.has_focus:
            self.set_focus(None)

    def _on_action_applied(self, action: Action) -> None:
        if isinstance(action, Quit):
            self.exit()
            return
        self._refresh_views()
        self._sync_input_focus()
        if self.dispatcher.mode is Mode.MODEL_SELECTOR and not self._picker_open:
            self._picker_open = True
            self.run_worker(self._open_model_picker(), group="model-picker", exclusive=True)

    async def _open_model_picker(self) -> None:
        models = [ModelRef.parse(name) for name in self.config.provider.models]
        try:
            for model in await self.provider.list_models():
                if model not in models:
                    models.append(model)
        except ChatTermError as exc:
            LOGGER.warning(
                "app.models.list_failed",
                extra={"event": "app.models.list_failed", "error_type": exc.__class__.__name__},
            )
            await self.dispatcher.send(ShowStatus(f"Model list unavailable: {exc}"))
        if not models:
            self._picker_open = False
            await self.dispatcher.send(ShowStatus("No models available."))
            await self.dispatcher.send(SwitchMode(Mode.INPUT))
            return
        self.push_screen(
            ModelPickerScreen(models, self.dispatcher.model),
            callback=self._on_model_picked,
        )

    async def _on_model_picked(self, model: ModelRef | None) -> None:
        self._picker_open = False
        if model is not None:
            await self.dispatcher.send(SelectModel(model))
        await self.dispatcher.send(SwitchMode(Mode.INPUT))

    async def _dispatch_key(self, key: str | None) -> bool:
        if not key:
            return False
        action = resolve_key(self.keymap, self.dispatcher.mode, key)
        if action is None:
            return False
        await self.dispatcher.send(action)
        return True

    async def action_press_key(self, key: str) -> None:
        """Route keys claimed by priority bindings through the keymap."""
        await self._dispatch_key(key)

    async def on_key(self, event: Key) -> None:
        """Translate a key press into an action for the current mode."""
        if self._picker_open:
            return
        if self._save_key and event.key == self._save_key:
            event.stop()
            event.prevent_default()
            await self.action_save_conversation()
            return
        # Punctuation arrives as a named key ("left_square_bracket"); the keymap uses characters.
        if await self._dispatch_key(event.key) or await self._dispatch_key(event.character):
            event.stop()
            event.prevent_default()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "message_input":
            return
        text = event.value
        if not text.strip():
            return
        event.input.value = ""
        await self.dispatcher.send(SendMessage(Message(Role.USER, text), model=self.dispatcher.model))

    async def action_save_conversation(self) -> None:
        """Write the active conversation to disk and list it."""
        current = self.dispatcher.conversation
        if not current.messages:
            await self.dispatcher.send(ShowStatus("Nothing to save."))
            return
        snapshot = Conversation(messages=current.snapshot(), identifier=current.identifier)
        try:
            meta = await asyncio.to_thread(self.store.save, snapshot)
        except OSError as exc:
            LOGGER.warning(
                "app.conversation.save_failed",
                extra={"event": "app.conversation.save_failed", "error": str(exc)},
            )
            await self.dispatcher.send(ShowStatus(f"Save failed: {exc}"))
            return
        await self.dispatcher.send(AddConversationToManager(meta))
        await self.dispatcher.send(ShowStatus(f"Saved {meta.label}"))
