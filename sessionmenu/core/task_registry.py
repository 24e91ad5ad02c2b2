"""Registry for background asyncio tasks owned by the menu controller.

Refreshes and user actions run as detached tasks on the owner event loop.
The registry keeps a strong reference to each one so it is not garbage
collected mid-flight, logs failures that nobody awaited, and cancels
whatever is left on shutdown.
"""

from __future__ import annotations

import asyncio
from typing import Coroutine, TypeVar

from sessionmenu.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class TaskRegistry:
    """Tracks spawned tasks until they finish.

    Example:
        registry = TaskRegistry()
        registry.spawn(cache.refresh(force=True), name="refresh-forced")
        await registry.shutdown(timeout=2.0)
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[object]] = set()

    def _on_task_done(self, task: asyncio.Task[object]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("Task cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc:
            logger.error("Background task failed", task=task.get_name(), error=str(exc), exc_info=exc)

    def spawn(self, coro: Coroutine[object, object, T], name: str) -> asyncio.Task[T]:
        """Schedule `coro` on the running loop and track it.

        Args:
            coro: Coroutine to run
            name: Task name used in logs

        Returns:
            The created task
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        logger.debug("Spawned task", task=name, active=len(self._tasks))
        return task

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel all tracked tasks and wait up to `timeout` seconds for them."""
        if not self._tasks:
            return

        pending_tasks = list(self._tasks)
        logger.info("Shutting down tracked tasks", count=len(pending_tasks), timeout=timeout)
        for task in pending_tasks:
            if not task.done():
                task.cancel()

        _, pending = await asyncio.wait(pending_tasks, timeout=timeout)
        for task in pending:
            logger.warning("Task still pending after shutdown timeout", task=task.get_name())

    def task_count(self) -> int:
        return len(self._tasks)
