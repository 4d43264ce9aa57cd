"""Shared, pausable scheduler for polling cycles.

Every polling cycle is a job on one scheduler. Jobs are plain coroutine
factories run as ``asyncio.Task`` objects on the current loop; there is no
concurrency limit, so queues never wait on each other.

Pausing holds back jobs that have not been dispatched yet. A job that is
already running finishes normally, so a pause does not take effect
instantly.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

from sqs_poller.logging import get_logger

log = get_logger("sqs_poller.scheduler")

Job = Callable[[], Awaitable[None]]


class PollingScheduler:
    """Run jobs cooperatively, gated by a global pause / resume switch.

    The scheduler starts paused; nothing runs until :meth:`resume`.
    """

    def __init__(self, auto_start: bool = False) -> None:
        self._resumed = asyncio.Event()
        if auto_start:
            self._resumed.set()
        self._tasks: set[asyncio.Task[None]] = set()
        self._waiting = 0
        self._running = 0

    @property
    def is_paused(self) -> bool:
        """Whether newly dispatched jobs are being held back."""
        return not self._resumed.is_set()

    @property
    def pending(self) -> int:
        """Number of jobs waiting to be dispatched."""
        return self._waiting

    @property
    def running(self) -> int:
        """Number of jobs currently executing."""
        return self._running

    def add(self, job: Job, name: str | None = None) -> asyncio.Task[None]:
        """Enqueue ``job``; it runs as soon as the scheduler is not paused."""
        task = asyncio.create_task(self._dispatch(job), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def resume(self) -> None:
        """Dispatch held and future jobs."""
        if self.is_paused:
            log.debug("scheduler_resumed", pending=self._waiting)
        self._resumed.set()

    def pause(self) -> None:
        """Hold back jobs that have not started yet."""
        if not self.is_paused:
            log.debug("scheduler_paused", running=self._running)
        self._resumed.clear()

    async def shutdown(self) -> None:
        """Cancel every outstanding job. Meant for process exit."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()
        log.debug("scheduler_shutdown", cancelled=len(tasks))

    async def _dispatch(self, job: Job) -> None:
        self._waiting += 1
        try:
            # The event may be cleared again between set() and this task waking
            while not self._resumed.is_set():
                await self._resumed.wait()
        finally:
            self._waiting -= 1

        self._running += 1
        try:
            await job()
        except asyncio.CancelledError:
            raise
        except Exception:
            log.exception("scheduled_job_failed")
        finally:
            self._running -= 1
