"""
Periodic background jobs.

A PeriodicJob owns one asyncio task that runs tick() immediately on start and
then every interval_seconds until stopped. SingleFlight keeps overlapping
runs of the same work (timer tick vs. manual trigger) from executing at once.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator

from loguru import logger

from assessment.core.clock import Clock, SystemClock


class SingleFlight:
    """
    Non-blocking in-process guard.

    try_acquire() succeeds for exactly one caller until release(). There is
    no await between the check and the set, so it is atomic on the event loop.
    """

    def __init__(self) -> None:
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def try_acquire(self) -> bool:
        if self._busy:
            return False
        self._busy = True
        return True

    def release(self) -> None:
        self._busy = False

    @contextmanager
    def claim(self) -> Iterator[bool]:
        """Yield whether the guard was acquired; releases only what it acquired."""
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()


@dataclass
class JobStatus:
    """Current job status."""

    is_running: bool = False
    last_run_at: datetime | None = None
    last_success: bool = True
    error_message: str | None = None
    total_runs: int = 0


class PeriodicJob:
    """
    Base class for interval jobs.

    Usage:
        job = ExamTimeoutScanner(session_factory, interval_seconds=60)
        job.start()
        # ... app runs ...
        await job.stop()
    """

    name = "periodic-job"

    def __init__(self, interval_seconds: float = 60, clock: Clock | None = None):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.interval_seconds = interval_seconds
        self.clock = clock or SystemClock()
        self._status = JobStatus()
        self._task: asyncio.Task | None = None

    @property
    def status(self) -> JobStatus:
        """Get current job status."""
        return self._status

    async def tick(self, first: bool) -> None:
        """One scheduled run; first is True for the run at start."""
        raise NotImplementedError

    def start(self) -> None:
        """Start the background loop on the running event loop."""
        if self._task is not None and not self._task.done():
            logger.warning("{} already running", self.name)
            return

        self._status.is_running = True
        self._task = asyncio.get_running_loop().create_task(self._loop(), name=self.name)
        logger.info("{} started (interval: {}s)", self.name, self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to exit."""
        task, self._task = self._task, None
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._status.is_running = False
        logger.info("{} stopped", self.name)

    async def _loop(self) -> None:
        first = True
        while True:
            await self._run_tick(first)
            first = False
            await asyncio.sleep(self.interval_seconds)

    async def _run_tick(self, first: bool) -> None:
        try:
            await self.tick(first)
            self._status.last_success = True
            self._status.error_message = None
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("{} tick failed: {}", self.name, exc)
            self._status.last_success = False
            self._status.error_message = str(exc)
        finally:
            self._status.last_run_at = self.clock.now()
            self._status.total_runs += 1
