"""
Exam timeout scanner.

Finds active attempts whose started_at + paper duration has passed and
finalizes them as timed out, each in its own transaction so one bad attempt
does not hold back the rest of the scan.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assessment.core.clock import Clock
from assessment.core.enums import ExamAttemptStatus
from assessment.db.database import async_session_scope
from assessment.db.models import ExamAttempt, ExamPaper
from assessment.exam.service import ExamService, timeout_at
from assessment.scheduling.base import PeriodicJob, SingleFlight


@dataclass
class TimeoutScanResult:
    trigger: str
    scanned_count: int
    timeout_count: int
    auto_finished_count: int
    scanned_at: datetime
    skipped: bool = False


@dataclass
class TimeoutSummary:
    active_count: int
    timeout_count: int
    checked_at: datetime


class ExamTimeoutScanner(PeriodicJob):
    """Periodic auto-finish of overdue exam attempts."""

    name = "exam-timeout-scanner"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock | None = None,
        interval_seconds: float = 60,
    ):
        super().__init__(interval_seconds=interval_seconds, clock=clock)
        self.session_factory = session_factory
        self._flight = SingleFlight()

    async def tick(self, first: bool) -> None:
        await self.scan_and_auto_finish("startup" if first else "timer")

    async def manual_scan(self) -> TimeoutScanResult:
        return await self.scan_and_auto_finish("manual")

    async def scan_and_auto_finish(self, trigger: str) -> TimeoutScanResult:
        """
        Finalize every overdue active attempt.

        Returns a zero result with skipped=True when another scan is running.
        """
        with self._flight.claim() as acquired:
            if not acquired:
                logger.debug("Timeout scan already running, skipping ({})", trigger)
                return TimeoutScanResult(
                    trigger=trigger,
                    scanned_count=0,
                    timeout_count=0,
                    auto_finished_count=0,
                    scanned_at=self.clock.now(),
                    skipped=True,
                )

            now = self.clock.now()
            active = await self._load_active_attempts()
            overdue = [
                attempt_id
                for attempt_id, started_at, duration_minutes in active
                if timeout_at(started_at, duration_minutes) <= now
            ]

            finished = 0
            for attempt_id in overdue:
                try:
                    async with async_session_scope(self.session_factory) as session:
                        if await ExamService(session, clock=self.clock).auto_finish_timeout_attempt(attempt_id):
                            finished += 1
                except Exception as exc:
                    logger.error("Failed to auto-finish attempt {}: {}", attempt_id, exc)

            result = TimeoutScanResult(
                trigger=trigger,
                scanned_count=len(active),
                timeout_count=len(overdue),
                auto_finished_count=finished,
                scanned_at=now,
            )
            if overdue or trigger == "manual":
                logger.info(
                    "Timeout scan ({}): scanned={} timeout={} finished={}",
                    trigger,
                    result.scanned_count,
                    result.timeout_count,
                    result.auto_finished_count,
                )
            return result

    async def get_timeout_summary(self) -> TimeoutSummary:
        now = self.clock.now()
        active = await self._load_active_attempts()
        return TimeoutSummary(
            active_count=len(active),
            timeout_count=sum(
                1 for _, started_at, duration_minutes in active if timeout_at(started_at, duration_minutes) <= now
            ),
            checked_at=now,
        )

    async def _load_active_attempts(self) -> list[tuple[UUID, datetime, int]]:
        async with async_session_scope(self.session_factory) as session:
            result = await session.execute(
                select(ExamAttempt.id, ExamAttempt.started_at, ExamPaper.duration_minutes)
                .join(ExamPaper, ExamPaper.id == ExamAttempt.paper_id)
                .where(ExamAttempt.status == ExamAttemptStatus.ACTIVE)
            )
            return [(row[0], row[1], row[2]) for row in result.all()]
