"""
Daily review task generation.

Once per UTC day (checked every interval), replaces that day's
ReviewDailyTask rows with one pending task per non-mastered wrong-book
entry due by the end of the day. Manual generation for any date goes
through the same single-flight guard and retry policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assessment.core.clock import Clock, end_of_day, parse_run_date, run_date_for
from assessment.core.enums import ReviewTaskStatus
from assessment.core.errors import BadRequestError, TransientError
from assessment.db.database import async_session_scope
from assessment.db.models import ReviewDailyTask, WrongBook
from assessment.scheduling.base import PeriodicJob, SingleFlight
from assessment.scheduling.retry import RetryPolicy


@dataclass
class GenerationResult:
    run_date: date
    generated_count: int
    trigger: str
    attempts: int = 1


@dataclass
class DailyTaskSummary:
    run_date: date
    total: int
    pending: int
    done: int


class ReviewTaskScheduler(PeriodicJob):
    """Generates each day's review tasks from the wrong book."""

    name = "review-task-scheduler"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock | None = None,
        retry_policy: RetryPolicy | None = None,
        interval_seconds: float = 60,
    ):
        super().__init__(interval_seconds=interval_seconds, clock=clock)
        self.session_factory = session_factory
        self.retry_policy = retry_policy or RetryPolicy()
        self.last_generated_run_date: date | None = None
        self._flight = SingleFlight()

    async def tick(self, first: bool) -> None:
        await self.generate_today_if_needed("startup" if first else "timer")

    async def generate_today_if_needed(self, trigger: str) -> GenerationResult | None:
        """Generate today's tasks unless already done today; never raises."""
        run_date = run_date_for(self.clock.now())
        if self.last_generated_run_date == run_date or self._flight.busy:
            return None

        try:
            return await self.generate_for_run_date(run_date, trigger)
        except Exception as exc:
            logger.error("Failed to generate review daily tasks for {}: {}", run_date, exc)
            return None

    async def manual_generate(self, run_date: str | None = None) -> GenerationResult:
        """
        Regenerate tasks for a date (today when omitted).

        Raises:
            BadRequestError: bad date, or a generation is already running
            TransientError: database still failing after all retries
        """
        return await self.generate_for_run_date(parse_run_date(run_date, self.clock.now()), "manual")

    async def generate_for_run_date(self, run_date: date, trigger: str) -> GenerationResult:
        with self._flight.claim() as acquired:
            if not acquired:
                raise BadRequestError("Review task generation is running")

            attempts = 0

            async def attempt() -> int:
                nonlocal attempts
                attempts += 1
                return await self._replace_tasks(run_date)

            generated = await self.retry_policy.run(attempt)
            self.last_generated_run_date = run_date

        logger.info(
            "Review daily tasks generated ({}): run_date={} count={} attempts={}",
            trigger,
            run_date,
            generated,
            attempts,
        )
        return GenerationResult(run_date=run_date, generated_count=generated, trigger=trigger, attempts=attempts)

    async def get_daily_task_summary(self, run_date: str | None = None) -> DailyTaskSummary:
        resolved = parse_run_date(run_date, self.clock.now())
        async with async_session_scope(self.session_factory) as session:
            result = await session.execute(
                select(ReviewDailyTask.status, func.count(ReviewDailyTask.id))
                .where(ReviewDailyTask.run_date == resolved)
                .group_by(ReviewDailyTask.status)
            )
            counts = {status: count for status, count in result.all()}

        pending = counts.get(ReviewTaskStatus.PENDING, 0)
        done = counts.get(ReviewTaskStatus.DONE, 0)
        return DailyTaskSummary(run_date=resolved, total=pending + done, pending=pending, done=done)

    async def _replace_tasks(self, run_date: date) -> int:
        """Delete the date's tasks and insert the due set in one transaction."""
        try:
            async with async_session_scope(self.session_factory) as session:
                due = await session.execute(
                    select(WrongBook.id, WrongBook.student_id, WrongBook.question_id, WrongBook.next_review_at)
                    .where(
                        WrongBook.is_mastered.is_(False),
                        WrongBook.next_review_at.is_(None) | (WrongBook.next_review_at <= end_of_day(run_date)),
                    )
                    .order_by(WrongBook.next_review_at.asc().nulls_first(), WrongBook.last_wrong_at.desc())
                )
                rows = due.all()

                await session.execute(delete(ReviewDailyTask).where(ReviewDailyTask.run_date == run_date))
                now = self.clock.now()
                session.add_all(
                    [
                        ReviewDailyTask(
                            run_date=run_date,
                            student_id=student_id,
                            wrong_book_id=wrong_book_id,
                            question_id=question_id,
                            status=ReviewTaskStatus.PENDING,
                            due_at=next_review_at,
                            created_at=now,
                        )
                        for wrong_book_id, student_id, question_id, next_review_at in rows
                    ]
                )
                await session.flush()
                return len(rows)
        except SQLAlchemyError as exc:
            raise TransientError(f"Review task generation failed: {exc}") from exc
