"""
Deferred Task Scheduler - the single "wait, then act" capability.

Warp Gate cannot observe some external events (build completion, environment
start-up, result availability), so it waits a fixed time instead. Every wait
goes through this class so it can later be replaced with real event-driven
confirmation without touching workflow code.

Scheduled tasks are tracked for logging and draining only; there is no
cancellation.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set

from .logger import get_logger

Sleep = Callable[[float], Awaitable[Any]]
Job = Callable[[], Awaitable[Any]]


class DeferredTaskScheduler:
    """
    Runs jobs as detached asyncio tasks after a fixed delay.

    Usage:
        scheduler = DeferredTaskScheduler()
        scheduler.schedule(20, lambda: engine.run_prelive_deployment(key, issue), name="prelive:CQS-21")
    """

    def __init__(self, sleep: Optional[Sleep] = None):
        """
        Args:
            sleep: coroutine used for every wait (defaults to asyncio.sleep)
        """
        self._sleep = sleep or asyncio.sleep
        self._tasks: Set[asyncio.Task] = set()
        self.logger = get_logger("DeferredTaskScheduler")

    @property
    def pending(self) -> int:
        """Number of scheduled jobs not yet finished."""
        return len(self._tasks)

    async def sleep(self, seconds: float) -> None:
        """Wait inside a running job."""
        if seconds > 0:
            await self._sleep(seconds)

    def schedule(self, delay: float, job: Job, name: str = "job") -> asyncio.Task:
        """Start ``job`` after ``delay`` seconds as a detached task. Requires a running loop."""
        task = asyncio.get_running_loop().create_task(self._run(delay, job, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.logger.debug("Scheduled job", job=name, delay_seconds=delay, pending=self.pending)
        return task

    async def _run(self, delay: float, job: Job, name: str) -> None:
        await self.sleep(delay)
        self.logger.debug("Running job", job=name)
        try:
            await job()
        except Exception as e:
            # Nobody awaits a detached job; log so the failure is not lost.
            self.logger.error("Deferred job failed", job=name, error=str(e), exc_info=e)

    async def drain(self) -> None:
        """Wait until every scheduled job, including jobs scheduled meanwhile, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
