"""Process-wide scheduler instances started with the API."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assessment.core.clock import Clock
from assessment.scheduling.exam_timeout import ExamTimeoutScanner
from assessment.scheduling.retry import RetryPolicy
from assessment.scheduling.review_tasks import ReviewTaskScheduler


@dataclass
class Schedulers:
    exam_timeout: ExamTimeoutScanner
    review_tasks: ReviewTaskScheduler


def build_schedulers(
    session_factory: async_sessionmaker[AsyncSession],
    clock: Clock | None = None,
    exam_timeout_interval_seconds: float = 60,
    review_task_interval_seconds: float = 60,
    review_task_retry_delays_ms: list[int] | None = None,
) -> Schedulers:
    retry_policy = RetryPolicy(tuple(review_task_retry_delays_ms)) if review_task_retry_delays_ms else RetryPolicy()
    return Schedulers(
        exam_timeout=ExamTimeoutScanner(
            session_factory,
            clock=clock,
            interval_seconds=exam_timeout_interval_seconds,
        ),
        review_tasks=ReviewTaskScheduler(
            session_factory,
            clock=clock,
            retry_policy=retry_policy,
            interval_seconds=review_task_interval_seconds,
        ),
    )


# Global singleton for easy access
_schedulers: Schedulers | None = None


def get_schedulers() -> Schedulers | None:
    """Get the global scheduler instances."""
    return _schedulers


def set_schedulers(schedulers: Schedulers | None) -> None:
    """Install scheduler instances without starting them (API startup, tests)."""
    global _schedulers
    _schedulers = schedulers


def start_schedulers(schedulers: Schedulers) -> Schedulers:
    """Install and start the global schedulers."""
    global _schedulers

    _schedulers = schedulers
    schedulers.exam_timeout.start()
    schedulers.review_tasks.start()
    return schedulers


async def stop_schedulers() -> None:
    """Stop the global schedulers."""
    global _schedulers

    if _schedulers:
        await _schedulers.exam_timeout.stop()
        await _schedulers.review_tasks.stop()
        logger.info("Background schedulers stopped")
        _schedulers = None
