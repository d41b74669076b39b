"""Fixed-delay background work with cancel handles."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Final

log: Final = logging.getLogger("gatebot")


class ScheduledTask:
    """Handle returned by :meth:`DeferredTaskScheduler.schedule`."""

    def __init__(self, name: str, task: asyncio.Task) -> None:
        self.name = name
        self._task = task

    @property
    def done(self) -> bool:
        return self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled()

    def cancel(self) -> bool:
        return self._task.cancel()

    async def wait(self) -> None:
        """Wait for the task to finish; cancellation is not re-raised."""
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise


class DeferredTaskScheduler:
    """Runs coroutine factories on the event loop, optionally after a delay.

    Failures inside scheduled work are logged and never propagate. Pending
    entries are cancelled by :meth:`shutdown`.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def schedule(
        self,
        delay: float,
        factory: Callable[[], Awaitable[object]],
        *,
        name: str = "deferred",
    ) -> ScheduledTask:
        task = asyncio.create_task(self._run(delay, factory, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return ScheduledTask(name, task)

    async def _run(
        self, delay: float, factory: Callable[[], Awaitable[object]], name: str
    ) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        try:
            await factory()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Scheduled task %s failed: %s", name, exc)

    async def shutdown(self, grace: float = 0) -> None:
        """Give pending work up to ``grace`` seconds, then cancel what is left."""
        tasks = [task for task in self._tasks if not task.done()]
        if tasks and grace > 0:
            _, still_pending = await asyncio.wait(tasks, timeout=grace)
            tasks = list(still_pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            log.info("Cancelled %d pending scheduled task(s)", len(tasks))
