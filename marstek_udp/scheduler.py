"""asyncio implementation of the Scheduler interface."""

from __future__ import annotations

import asyncio
import logging

from .client_protocol import Job

_LOGGER = logging.getLogger(__name__)


class AsyncioScheduler:
    """Run driver jobs as tasks on the running event loop.

    Each job runs in its own task. A job that raises is logged and, for
    recurring jobs, does not stop later runs. Cancelling a handle stops
    future runs only: a job that is already running is shielded and
    finishes on its own.
    """

    def __init__(self, name: str = "marstek") -> None:
        self._name = name
        self._tasks: set[asyncio.Task[None]] = set()
        self._running: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of tasks and running jobs that have not finished yet."""
        return len(self._tasks | self._running)

    def _track(self, coro, label: str) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(
            coro, name=f"{self._name}-{label}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(self, job: Job) -> None:
        try:
            await job()
        except asyncio.CancelledError:
            raise
        except Exception:
            _LOGGER.exception("Scheduled job %r failed", job)

    async def _run_job(self, job: Job) -> None:
        running = asyncio.get_running_loop().create_task(
            self._guarded(job), name=f"{self._name}-job"
        )
        self._running.add(running)
        running.add_done_callback(self._running.discard)
        await asyncio.shield(running)

    async def _delayed(self, delay: float, job: Job) -> None:
        await asyncio.sleep(delay)
        await self._run_job(job)

    async def _recurring(self, interval: float, job: Job) -> None:
        while True:
            await self._run_job(job)
            await asyncio.sleep(interval)

    def run_once(self, job: Job) -> asyncio.Task[None]:
        return self._track(self._run_job(job), "once")

    def run_after(self, delay: float, job: Job) -> asyncio.Task[None]:
        return self._track(self._delayed(max(0.0, delay), job), "delayed")

    def run_every(self, interval: float, job: Job) -> asyncio.Task[None]:
        if interval <= 0:
            raise ValueError(f"Interval must be positive (got {interval})")
        return self._track(self._recurring(interval, job), "recurring")

    async def shutdown(self) -> None:
        """Cancel every scheduled task and wait for running jobs to finish."""
        current = asyncio.current_task()
        tasks = [task for task in self._tasks if task is not current]
        for task in tasks:
            task.cancel()
        running = [task for task in self._running if task is not current]
        waiting = tasks + running
        if waiting:
            await asyncio.gather(*waiting, return_exceptions=True)
        _LOGGER.debug(
            "Scheduler %s stopped %d task(s), %d job(s) ran to completion",
            self._name,
            len(tasks),
            len(running),
        )
