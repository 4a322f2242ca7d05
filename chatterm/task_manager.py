"""Lifecycle tracking for streaming pipeline tasks and their cancel tokens."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


@dataclass
class CancelToken:
    """Cooperative cancellation flag checked by a pipeline between steps."""

    _event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class TrackedTask:
    task: asyncio.Task[Any]
    token: CancelToken


class TaskManager:
    """Track named background tasks, each paired with a cancel token.

    Entries remove themselves once their task completes; a task that ended
    with an exception is logged as it is forgotten.
    """

    def __init__(self) -> None:
        self._tracked: dict[str, TrackedTask] = {}

    def add(self, name: str, task: asyncio.Task[Any], token: CancelToken) -> None:
        self._tracked[name] = TrackedTask(task=task, token=token)
        task.add_done_callback(lambda _task: self._forget(name, _task))

    def _forget(self, name: str, task: asyncio.Task[Any]) -> None:
        tracked = self._tracked.get(name)
        if tracked is not None and tracked.task is task:
            del self._tracked[name]
        if not task.cancelled() and task.exception() is not None:
            LOGGER.warning(
                "tasks.failed",
                extra={
                    "event": "tasks.failed",
                    "task": name,
                    "error_type": task.exception().__class__.__name__,
                },
            )

    def get(self, name: str) -> asyncio.Task[Any] | None:
        tracked = self._tracked.get(name)
        return tracked.task if tracked is not None else None

    def __len__(self) -> int:
        return len(self._tracked)

    def cancel_nowait(self, name: str) -> bool:
        """Signal the token and request task cancellation without awaiting it."""
        tracked = self._tracked.pop(name, None)
        if tracked is None:
            return False
        tracked.token.cancel()
        if not tracked.task.done():
            tracked.task.cancel()
        LOGGER.info("tasks.cancel", extra={"event": "tasks.cancel", "task": name})
        return True

    async def cancel(self, name: str) -> None:
        """Cancel a named task and await its completion."""
        task = self.get(name)
        if not self.cancel_nowait(name) or task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def cancel_all(self) -> None:
        """Cancel every tracked task and await them all."""
        tasks = [tracked.task for tracked in self._tracked.values()]
        for name in list(self._tracked):
            self.cancel_nowait(name)
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:  # noqa: BLE001
                pass

    async def await_all(self) -> None:
        """Await all tracked tasks without cancelling them.

        A task that failed is dropped; its error is logged by the done callback.
        """
        while self._tracked:
            task = next(iter(self._tracked.values())).task
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:  # noqa: BLE001
                pass
            self._forget_done()

    def _forget_done(self) -> None:
        for name, tracked in list(self._tracked.items()):
            if tracked.task.done():
                del self._tracked[name]
