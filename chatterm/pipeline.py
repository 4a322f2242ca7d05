"""Per-send streaming task that reports progress only through actions."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
import logging

from .actions import Action, ReceiveMessage, ShowStatus, StreamMessage
from .exceptions import ChatTermError
from .message import Message, MessageStatus, ModelRef, Role
from .provider import CompletionProvider
from .task_manager import CancelToken

LOGGER = logging.getLogger(__name__)

Emit = Callable[[Action], Awaitable[None]]


class StreamingCompletionPipeline:
    """Drive one completion request and feed its progress back as actions.

    The pipeline owns a private copy of the history and its own text
    accumulator. It never touches conversation state: everything it learns
    is expressed as ``ReceiveMessage``/``StreamMessage``/``ShowStatus``
    actions passed to ``emit``, which is expected to enqueue them in order.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        emit: Emit,
        message: Message,
        model: ModelRef | None,
        history: Sequence[Message],
        token: CancelToken | None = None,
        session_id: int | None = None,
    ) -> None:
        self.provider = provider
        self._emit = emit
        self.message = message
        self.model = model
        self.history = list(history)
        self.token = token or CancelToken()
        self.session_id = session_id
        self._content = ""

    async def _send(self, action: Action) -> bool:
        """Emit ``action`` unless cancelled; return whether it was sent."""
        if self.token.cancelled:
            return False
        await self._emit(action)
        return True

    def _assistant_message(self, status: MessageStatus | None) -> Message:
        return Message(role=Role.ASSISTANT, content=self._content, status=status, model=self.model)

    async def run(self) -> None:
        if not await self._send(ReceiveMessage(self.message, self.session_id)):
            return
        if self.model is None:
            LOGGER.info("pipeline.no_model", extra={"event": "pipeline.no_model"})
            return
        if not await self._send(
            ReceiveMessage(self._assistant_message(MessageStatus.STARTING), self.session_id)
        ):
            return

        try:
            await self._stream()
        except asyncio.CancelledError:
            LOGGER.info(
                "pipeline.cancelled",
                extra={"event": "pipeline.cancelled", "session": self.session_id},
            )
            raise
        except ChatTermError as exc:
            LOGGER.warning(
                "pipeline.failed",
                extra={
                    "event": "pipeline.failed",
                    "session": self.session_id,
                    "error_type": exc.__class__.__name__,
                    "received_chars": len(self._content),
                },
            )
            if await self._send(
                StreamMessage(self._assistant_message(MessageStatus.FAILED), self.session_id)
            ):
                await self._send(ShowStatus(str(exc)))
        except Exception as exc:  # noqa: BLE001 - any other failure still ends the reply.
            LOGGER.exception(
                "pipeline.crashed",
                extra={"event": "pipeline.crashed", "session": self.session_id},
            )
            if await self._send(
                StreamMessage(self._assistant_message(MessageStatus.FAILED), self.session_id)
            ):
                await self._send(ShowStatus(f"Streaming failed: {exc}"))

    async def _stream(self) -> None:
        assert self.model is not None
        status, events = await self.provider.begin(self.model, [*self.history, self.message])
        LOGGER.info(
            "pipeline.started",
            extra={"event": "pipeline.started", "session": self.session_id, "status": status.value},
        )
        async for event in events:
            if self.token.cancelled:
                LOGGER.info(
                    "pipeline.cancelled",
                    extra={"event": "pipeline.cancelled", "session": self.session_id},
                )
                return
            if event.kind == "done":
                break
            self._content += event.data
            if not await self._send(
                StreamMessage(self._assistant_message(None), self.session_id)
            ):
                return
        LOGGER.info(
            "pipeline.completed",
            extra={
                "event": "pipeline.completed",
                "session": self.session_id,
                "received_chars": len(self._content),
            },
        )
