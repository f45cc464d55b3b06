"""Detached background work — fire-and-forget coroutines with their own failure channel."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """Run coroutines as detached ``asyncio`` tasks.

    The caller that spawns a task never awaits it and never sees its result
    or exception. Failures are logged here and go nowhere else. Strong
    references are kept until each task finishes so the event loop cannot
    garbage-collect work in flight.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self.failed: int = 0

    def spawn(
        self,
        coro: Coroutine[Any, Any, Any],
        *,
        name: Optional[str] = None,
    ) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info("Background task %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            self.failed += 1
            logger.error(
                "Background task %s failed",
                task.get_name(),
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight tasks (shutdown / tests). Never raises task errors."""
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in still_running:
            logger.warning("Cancelling background task %s at drain timeout", task.get_name())
            task.cancel()
        if still_running:
            # Let cancelled tasks run their cleanup before the caller moves on.
            await asyncio.gather(*still_running, return_exceptions=True)
