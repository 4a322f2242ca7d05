"""Single-consumer action loop that owns all conversation and focus state."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
import itertools
import logging
from typing import assert_never

from .actions import (
    Action,
    AddConversationToManager,
    DeleteSelectedMessage,
    LoadSelectedConversation,
    NewConversation,
    Quit,
    ReceiveMessage,
    SelectModel,
    SelectNextConversation,
    SelectNextMessage,
    SelectPreviousConversation,
    SelectPreviousMessage,
    SendMessage,
    ShowStatus,
    StreamMessage,
    SwitchMode,
)
from .conversation import Conversation
from .exceptions import ChatTermError, ModelNotConfiguredError
from .focus import FocusStateMachine, Mode, ViewerState
from .manager import ConversationManager
from .message import Message, ModelRef
from .persistence import new_conversation_id
from .pipeline import StreamingCompletionPipeline
from .provider import CompletionProvider
from .task_manager import CancelToken, TaskManager

LOGGER = logging.getLogger(__name__)

Listener = Callable[[Action], None]


@dataclass
class _Session:
    """A spawned pipeline and the conversation its messages belong to."""

    conversation: Conversation
    task: asyncio.Task[None]
    cancelled: bool = False


class ActionDispatcher:
    """Apply actions strictly in arrival order from one multiplexed queue.

    All state mutation happens in :meth:`dispatch`, which never awaits. A
    ``SendMessage`` spawns a :class:`StreamingCompletionPipeline` task whose
    only way back into this state is the same queue.
    """

    def __init__(
        self,
        manager: ConversationManager,
        provider: CompletionProvider,
        *,
        model: ModelRef | None = None,
        mode: Mode = Mode.INPUT,
        queue_size: int = 256,
    ) -> None:
        self.manager = manager
        self.provider = provider
        self.model = model
        self.mode = mode
        self.focus = FocusStateMachine()
        self.focus.switch_mode(mode, manager.active_conversation)
        self.status_message = ""
        self.running = False
        self._queue: asyncio.Queue[Action] = asyncio.Queue(maxsize=max(1, queue_size))
        self._tasks = TaskManager()
        self._session_ids = itertools.count(1)
        # Kept until the task is done and nothing it emitted is still queued.
        self._sessions: dict[int, _Session] = {}
        self._listeners: list[Listener] = []

    @property
    def conversation(self) -> Conversation:
        return self.manager.active_conversation

    @property
    def viewer_state(self) -> ViewerState:
        return self.focus.state

    @property
    def active_sessions(self) -> int:
        return len(self._tasks)

    def add_listener(self, listener: Listener) -> None:
        """Register a callback run after every applied action (render hook)."""
        self._listeners.append(listener)

    async def send(self, action: Action) -> None:
        """Enqueue an action, waiting for room when the queue is full."""
        await self._queue.put(action)

    def send_nowait(self, action: Action) -> None:
        self._queue.put_nowait(action)

    def require_model(self, model: ModelRef | None = None) -> ModelRef:
        """Return the model to use for a send, or raise when none is configured."""
        chosen = model or self.model
        if chosen is None:
            raise ModelNotConfiguredError("No model configured; pick one with the model selector.")
        return chosen

    async def run(self) -> None:
        """Consume actions until a ``Quit`` action arrives."""
        self.running = True
        LOGGER.info("dispatcher.start", extra={"event": "dispatcher.start"})
        try:
            while self.running:
                action = await self._queue.get()
                try:
                    self.dispatch(action)
                    self._notify(action)
                finally:
                    self._queue.task_done()
                self._prune_sessions()
        finally:
            self.running = False
            LOGGER.info("dispatcher.stop", extra={"event": "dispatcher.stop"})

    def _notify(self, action: Action) -> None:
        for listener in self._listeners:
            try:
                listener(action)
            except Exception:  # noqa: BLE001 - a broken view must not stop the loop.
                LOGGER.exception("dispatcher.listener.failed", extra={"event": "dispatcher.listener.failed"})

    def dispatch(self, action: Action) -> None:
        """Apply one action; domain errors become a status message."""
        try:
            self._apply(action)
        except ChatTermError as exc:
            self.status_message = str(exc)
            LOGGER.warning(
                "dispatcher.action.failed",
                extra={
                    "event": "dispatcher.action.failed",
                    "action": type(action).__name__,
                    "error_type": exc.__class__.__name__,
                },
            )
        except Exception as exc:  # noqa: BLE001 - the loop lives as long as the process.
            self.status_message = f"Internal error: {exc}"
            LOGGER.exception(
                "dispatcher.action.crashed",
                extra={"event": "dispatcher.action.crashed", "action": type(action).__name__},
            )

    def _apply(self, action: Action) -> None:
        conversation = self.manager.active_conversation
        match action:
            case ReceiveMessage(message=message, session_id=session_id):
                if self._is_stale(session_id):
                    return
                conversation.add_message(message)
            case StreamMessage(message=message, session_id=session_id):
                if self._is_stale(session_id):
                    return
                if not conversation.replace_last_message(message):
                    LOGGER.debug("dispatcher.stream.no_target", extra={"event": "dispatcher.stream.no_target"})
            case SendMessage(message=message, model=model):
                self._spawn_pipeline(message, model)
            case SelectNextMessage():
                conversation.select_next_message()
            case SelectPreviousMessage():
                conversation.select_prev_message()
            case DeleteSelectedMessage():
                self._delete_selected(conversation)
            case SwitchMode(mode=mode):
                self.mode = mode
                self.focus.switch_mode(mode, conversation)
            case SelectNextConversation():
                self.manager.select_next_conversation()
            case SelectPreviousConversation():
                self.manager.select_prev_conversation()
            case LoadSelectedConversation():
                self._load_selected()
            case AddConversationToManager(meta=meta):
                self.manager.add_conversation(meta)
            case NewConversation():
                self._cancel_sessions_for(conversation)
                self.manager.replace_active(Conversation(identifier=new_conversation_id()))
                self.status_message = "New conversation"
            case SelectModel(model=model):
                self.model = model
                self.status_message = f"Model: {model}" if model else "No model selected"
            case ShowStatus(text=text):
                self.status_message = text
            case Quit():
                self.running = False
            case _:
                assert_never(action)

    def _spawn_pipeline(self, message: Message, model: ModelRef | None) -> None:
        conversation = self.manager.active_conversation
        try:
            model = self.require_model(model)
        except ModelNotConfiguredError as exc:
            model = None
            self.status_message = str(exc)
        session_id = next(self._session_ids)
        token = CancelToken()
        pipeline = StreamingCompletionPipeline(
            provider=self.provider,
            emit=self.send,
            message=message,
            model=model,
            history=conversation.snapshot(),
            token=token,
            session_id=session_id,
        )
        task = asyncio.create_task(pipeline.run(), name=f"pipeline-{session_id}")
        self._tasks.add(str(session_id), task, token)
        self._sessions[session_id] = _Session(conversation, task)
        LOGGER.info(
            "dispatcher.pipeline.spawned",
            extra={
                "event": "dispatcher.pipeline.spawned",
                "session": session_id,
                "model": str(model) if model else None,
            },
        )

    def _delete_selected(self, conversation: Conversation) -> None:
        streaming_into_last = (
            conversation.selected_message is not None
            and conversation.selected_message == len(conversation.messages) - 1
        )
        if streaming_into_last:
            self._cancel_sessions_for(conversation)
        conversation.delete_selected_message()

    def _load_selected(self) -> None:
        previous = self.manager.active_conversation
        loaded = self.manager.activate_selected_conversation()
        self._cancel_sessions_for(previous)
        self.focus.switch_mode(self.mode, loaded)
        meta = self.manager.selected_meta()
        self.status_message = f"Loaded {meta.label}" if meta else "Loaded conversation"

    def _is_stale(self, session_id: int | None) -> bool:
        if session_id is None:
            return False
        session = self._sessions.get(session_id)
        return session is not None and session.cancelled

    def _cancel_sessions_for(self, conversation: Conversation) -> None:
        """Cancel pipelines writing into ``conversation`` and drop what they already queued."""
        for session_id, session in self._sessions.items():
            if session.conversation is conversation and not session.cancelled:
                session.cancelled = True
                self._tasks.cancel_nowait(str(session_id))

    def _prune_sessions(self) -> None:
        if not self._queue.empty():
            return
        for session_id, session in list(self._sessions.items()):
            if session.task.done():
                del self._sessions[session_id]

    async def drain(self) -> None:
        """Wait for every pipeline to finish and every queued action to be applied."""
        while True:
            await self._tasks.await_all()
            await self._queue.join()
            if not len(self._tasks) and self._queue.empty():
                self._prune_sessions()
                return

    async def shutdown(self) -> None:
        """Cancel in-flight pipelines; the loop itself is stopped by ``Quit``."""
        for session in self._sessions.values():
            session.cancelled = True
        await self._tasks.cancel_all()
