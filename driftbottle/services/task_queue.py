"""
driftbottle.services.task_queue — Keyed background task registry
=================================================================

Distribution runs off the request path.  Each pass is an ``asyncio``
task registered under the id of the bottle it distributes:

- A key with a task still in flight is refused, so two passes seeded
  from the same bottle never run at once.
- Failures are logged from a done-callback instead of vanishing with
  the task.
- ``join()`` waits for everything, including passes spawned while
  waiting; ``stop()`` cancels on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import partial

logger = logging.getLogger(__name__)


class DistributionQueue:
    """At most one in-flight task per key."""

    def __init__(self) -> None:
        self._tasks: dict[int, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def is_pending(self, key: int) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    def submit(self, key: int, factory: Callable[[], Awaitable[object]]) -> asyncio.Task | None:
        """Schedule ``factory()`` under *key*.

        Returns the new task, or ``None`` when *key* is already in flight
        (the factory is not called in that case).  Must be called from a
        running event loop.
        """
        if self.is_pending(key):
            logger.debug("Distribution of bottle %d already in flight; skipping", key)
            return None

        task = asyncio.get_running_loop().create_task(factory(), name=f"distribute-{key}")
        self._tasks[key] = task
        task.add_done_callback(partial(self._finished, key))
        return task

    def _finished(self, key: int, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        if task.cancelled():
            logger.info("Distribution of bottle %d cancelled", key)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Distribution of bottle %d failed", key, exc_info=exc)

    async def join(self) -> None:
        """Wait until no task is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)
            # Let done-callbacks unregister finished tasks.
            await asyncio.sleep(0)

    def stop(self) -> None:
        """Cancel every in-flight task."""
        for task in list(self._tasks.values()):
            task.cancel()
