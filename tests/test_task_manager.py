"""Tests for the TaskManager lifecycle helper."""

from __future__ import annotations

import asyncio
import unittest

from chatterm.task_manager import CancelToken, TaskManager


class TaskManagerTests(unittest.IsolatedAsyncioTestCase):
    """Validate tracking, cancellation and automatic cleanup."""

    async def _sleeper(self, cancelled: list[bool]) -> None:
        try:
            await asyncio.sleep(9999)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    async def test_finished_tasks_are_forgotten(self) -> None:
        tm = TaskManager()

        async def _quick() -> None:
            return None

        tm.add("1", asyncio.create_task(_quick()), CancelToken())
        self.assertEqual(len(tm), 1)
        await tm.await_all()
        await asyncio.sleep(0)
        self.assertEqual(len(tm), 0)
        self.assertIsNone(tm.get("1"))

    async def test_cancel_by_name_sets_token(self) -> None:
        tm = TaskManager()
        cancelled: list[bool] = []
        token = CancelToken()
        task = asyncio.create_task(self._sleeper(cancelled))
        tm.add("stream", task, token)
        await asyncio.sleep(0)

        await tm.cancel("stream")

        self.assertTrue(task.done())
        self.assertTrue(cancelled)
        self.assertTrue(token.cancelled)
        self.assertEqual(len(tm), 0)

    async def test_cancel_unknown_name_is_noop(self) -> None:
        tm = TaskManager()
        await tm.cancel("missing")
        self.assertFalse(tm.cancel_nowait("missing"))

    async def test_await_all_survives_failed_task(self) -> None:
        tm = TaskManager()

        async def _broken() -> None:
            raise ValueError("bad payload")

        tm.add("broken", asyncio.create_task(_broken()), CancelToken())

        with self.assertLogs("chatterm.task_manager", level="WARNING") as logs:
            await tm.await_all()
            await asyncio.sleep(0)

        self.assertEqual(len(tm), 0)
        self.assertIn("tasks.failed", logs.output[0])

    async def test_cancel_all(self) -> None:
        tm = TaskManager()
        cancelled: list[bool] = []
        tokens = [CancelToken(), CancelToken()]
        for index, token in enumerate(tokens):
            tm.add(str(index), asyncio.create_task(self._sleeper(cancelled)), token)
        await asyncio.sleep(0)

        await tm.cancel_all()

        self.assertEqual(cancelled, [True, True])
        self.assertTrue(all(token.cancelled for token in tokens))
        self.assertEqual(len(tm), 0)


if __name__ == "__main__":
    unittest.main()
