"""
Wrong-book store.

Keeps one WrongBook row per (student, question) and the day's review tasks in
step with submitted answers:

- an incorrect practice/exam answer upserts the entry and resets its plan
- a review answer advances (or steps back) the plan and closes today's task
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from assessment.core.clock import Clock, SystemClock, end_of_day, run_date_for
from assessment.core.enums import AttemptType, ReviewTaskStatus
from assessment.core.errors import NotFoundError
from assessment.core.events import AnswerSubmitted
from assessment.core.judging import AnswerOutcome
from assessment.core.pagination import Page, paginate
from assessment.db.models import PracticeRecord, Question, ReviewDailyTask, WrongBook
from assessment.study.questions import question_payload
from assessment.study.review_plan import (
    plan_after_review,
    plan_after_wrong_answer,
    should_auto_master,
)


@dataclass
class WrongBookEntryView:
    id: UUID
    question_id: UUID
    wrong_count: int
    last_wrong_at: datetime
    last_wrong_answer: Any
    is_mastered: bool
    review_level: int
    next_review_at: datetime | None
    last_review_result: bool | None
    last_reviewed_at: datetime | None
    created_at: datetime | None
    question: dict[str, Any] | None = None


@dataclass
class ReviewHistoryItem:
    """One answer submitted from a review session."""

    practice_record_id: UUID
    question_id: UUID
    session_id: UUID | None
    session_item_id: UUID | None
    submitted_answer: Any
    outcome: AnswerOutcome
    is_correct: bool | None
    duration: int
    created_at: datetime
    question: dict[str, Any] | None = None


def _entry_view(entry: WrongBook, question: Question | None = None) -> WrongBookEntryView:
    return WrongBookEntryView(
        id=entry.id,
        question_id=entry.question_id,
        wrong_count=entry.wrong_count,
        last_wrong_at=entry.last_wrong_at,
        last_wrong_answer=entry.last_wrong_answer,
        is_mastered=entry.is_mastered,
        review_level=entry.review_level,
        next_review_at=entry.next_review_at,
        last_review_result=entry.last_review_result,
        last_reviewed_at=entry.last_reviewed_at,
        created_at=entry.created_at,
        question=question_payload(question) if question else None,
    )


class WrongBookStore:
    """Wrong-book and daily review task persistence."""

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    async def get_entry(self, student_id: str, question_id: UUID) -> WrongBook | None:
        result = await self.session.execute(
            select(WrongBook).where(
                WrongBook.student_id == student_id,
                WrongBook.question_id == question_id,
            )
        )
        return result.scalar_one_or_none()

    async def record_wrong_answer(self, student_id: str, question_id: UUID, answer: Any) -> WrongBook:
        """Upsert the entry for a missed question and restart its review plan."""
        now = self.clock.now()
        plan = plan_after_wrong_answer(now)
        entry = await self.get_entry(student_id, question_id)

        if entry is None:
            entry = WrongBook(
                student_id=student_id,
                question_id=question_id,
                wrong_count=1,
                created_at=now,
            )
            self.session.add(entry)
        else:
            entry.wrong_count = (entry.wrong_count or 0) + 1

        entry.last_wrong_at = now
        entry.last_wrong_answer = answer
        entry.is_mastered = False
        entry.review_level = plan.level
        entry.next_review_at = plan.next_review_at
        entry.last_review_result = None
        await self.session.flush()

        logger.debug(
            "Wrong book updated: student={} question={} wrong_count={}",
            student_id,
            question_id,
            entry.wrong_count,
        )
        return entry

    async def apply_review_result(
        self,
        student_id: str,
        question_id: UUID,
        is_correct: bool,
        answer: Any,
    ) -> WrongBook | None:
        """
        Apply a review-mode answer to the entry's plan.

        Returns the entry, or None when a correct answer arrives for a question
        that was never in the wrong book.
        """
        now = self.clock.now()
        entry = await self.get_entry(student_id, question_id)

        if entry is None:
            if not is_correct:
                entry = await self.record_wrong_answer(student_id, question_id, answer)
            await self.mark_today_task_done(student_id, question_id)
            return entry

        plan = plan_after_review(entry.review_level, is_correct, now)
        entry.review_level = plan.level
        entry.next_review_at = plan.next_review_at
        entry.last_review_result = is_correct
        entry.last_reviewed_at = now
        entry.is_mastered = is_correct and should_auto_master(plan.level)
        if not is_correct:
            entry.wrong_count = (entry.wrong_count or 0) + 1
            entry.last_wrong_at = now
            entry.last_wrong_answer = answer
        await self.session.flush()

        if entry.is_mastered:
            logger.info("Wrong book entry mastered: student={} question={}", student_id, question_id)

        await self.mark_today_task_done(student_id, question_id)
        return entry

    async def mark_today_task_done(self, student_id: str, question_id: UUID) -> int:
        """Close today's pending review task for the question, if any."""
        now = self.clock.now()
        result = await self.session.execute(
            update(ReviewDailyTask)
            .where(
                ReviewDailyTask.student_id == student_id,
                ReviewDailyTask.question_id == question_id,
                ReviewDailyTask.run_date == run_date_for(now),
                ReviewDailyTask.status == ReviewTaskStatus.PENDING,
            )
            .values(status=ReviewTaskStatus.DONE, completed_at=now)
        )
        return result.rowcount or 0

    async def handle_answer_submitted(self, event: AnswerSubmitted) -> None:
        """AnswerSubmitted consumer."""
        if event.attempt_type is AttemptType.REVIEW:
            if event.outcome.is_graded:
                await self.apply_review_result(
                    event.student_id, event.question_id, bool(event.outcome.is_correct), event.answer
                )
            else:
                await self.mark_today_task_done(event.student_id, event.question_id)
            return

        if event.outcome is AnswerOutcome.INCORRECT:
            await self.record_wrong_answer(event.student_id, event.question_id, event.answer)

    async def list_due_entries(self, student_id: str, limit: int) -> list[WrongBook]:
        """Non-mastered entries due now, earliest due first, then most recently missed."""
        now = self.clock.now()
        result = await self.session.execute(
            select(WrongBook)
            .where(
                WrongBook.student_id == student_id,
                WrongBook.is_mastered.is_(False),
                (WrongBook.next_review_at.is_(None)) | (WrongBook.next_review_at <= now),
            )
            .order_by(WrongBook.next_review_at.asc().nulls_first(), WrongBook.last_wrong_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_today_tasks(
        self,
        student_id: str,
        limit: int,
        run_date: date | None = None,
    ) -> list[tuple[ReviewDailyTask, WrongBook]]:
        """Pending review tasks for the run date with their wrong-book entries."""
        run_date = run_date or run_date_for(self.clock.now())
        result = await self.session.execute(
            select(ReviewDailyTask, WrongBook)
            .join(WrongBook, WrongBook.id == ReviewDailyTask.wrong_book_id)
            .where(
                ReviewDailyTask.student_id == student_id,
                ReviewDailyTask.run_date == run_date,
                ReviewDailyTask.status == ReviewTaskStatus.PENDING,
            )
            .order_by(ReviewDailyTask.due_at.asc().nulls_first(), WrongBook.last_wrong_at.desc())
            .limit(limit)
        )
        return [(task, entry) for task, entry in result.all()]

    # -------------------------------------------------------------------------
    # Student views
    # -------------------------------------------------------------------------

    async def list_entries(
        self,
        student_id: str,
        page: int = 1,
        page_size: int = 10,
        is_mastered: bool | None = None,
    ) -> Page[WrongBookEntryView]:
        """The student's wrong book, most recently missed first; answers withheld."""
        stmt = (
            select(WrongBook, Question)
            .join(Question, Question.id == WrongBook.question_id)
            .where(WrongBook.student_id == student_id)
        )
        if is_mastered is not None:
            stmt = stmt.where(WrongBook.is_mastered.is_(is_mastered))
        stmt = stmt.order_by(WrongBook.last_wrong_at.desc(), WrongBook.id)
        return await paginate(
            self.session,
            stmt,
            page,
            page_size,
            transform=lambda row: _entry_view(row[0], row[1]),
            scalars=False,
        )

    async def list_today_review_queue(
        self,
        student_id: str,
        page: int = 1,
        page_size: int = 10,
        include_mastered: bool = False,
    ) -> Page[WrongBookEntryView]:
        """Entries due by the end of today's UTC run date, in review order."""
        stmt = (
            select(WrongBook, Question)
            .join(Question, Question.id == WrongBook.question_id)
            .where(
                WrongBook.student_id == student_id,
                WrongBook.next_review_at.is_(None)
                | (WrongBook.next_review_at <= end_of_day(run_date_for(self.clock.now()))),
            )
        )
        if not include_mastered:
            stmt = stmt.where(WrongBook.is_mastered.is_(False))
        stmt = stmt.order_by(
            WrongBook.next_review_at.asc().nulls_first(), WrongBook.last_wrong_at.desc(), WrongBook.id
        )
        return await paginate(
            self.session,
            stmt,
            page,
            page_size,
            transform=lambda row: _entry_view(row[0], row[1]),
            scalars=False,
        )

    async def list_review_history(
        self,
        student_id: str,
        page: int = 1,
        page_size: int = 10,
        question_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Page[ReviewHistoryItem]:
        """Review-session answers, newest first, optionally within [start, end]."""
        stmt = (
            select(PracticeRecord, Question)
            .join(Question, Question.id == PracticeRecord.question_id)
            .where(
                PracticeRecord.student_id == student_id,
                PracticeRecord.attempt_type == AttemptType.REVIEW,
            )
        )
        if question_id is not None:
            stmt = stmt.where(PracticeRecord.question_id == question_id)
        if start is not None:
            stmt = stmt.where(PracticeRecord.created_at >= start)
        if end is not None:
            stmt = stmt.where(PracticeRecord.created_at <= end)
        stmt = stmt.order_by(PracticeRecord.created_at.desc(), PracticeRecord.id)

        def to_item(row: Any) -> ReviewHistoryItem:
            record, question = row
            return ReviewHistoryItem(
                practice_record_id=record.id,
                question_id=record.question_id,
                session_id=record.session_id,
                session_item_id=record.session_item_id,
                submitted_answer=record.submitted_answer,
                outcome=record.outcome,
                is_correct=record.outcome.is_correct,
                duration=record.duration,
                created_at=record.created_at,
                question=question_payload(question),
            )

        return await paginate(self.session, stmt, page, page_size, transform=to_item, scalars=False)

    async def toggle_mastered(self, student_id: str, entry_id: UUID) -> WrongBookEntryView:
        """
        Flip the mastered flag of one of the student's entries.

        Raises:
            NotFoundError: entry missing or owned by another student
        """
        entry = await self._require_owned_entry(student_id, entry_id)
        entry.is_mastered = not entry.is_mastered
        await self.session.flush()
        logger.info("Wrong book entry {} mastered={}", entry_id, entry.is_mastered)
        return _entry_view(entry, await self.session.get(Question, entry.question_id))

    async def remove_entry(self, student_id: str, entry_id: UUID) -> None:
        """
        Delete an entry together with its review tasks.

        Raises:
            NotFoundError: entry missing or owned by another student
        """
        entry = await self._require_owned_entry(student_id, entry_id)
        await self.session.execute(delete(ReviewDailyTask).where(ReviewDailyTask.wrong_book_id == entry.id))
        await self.session.delete(entry)
        await self.session.flush()
        logger.info("Wrong book entry removed: id={} student={}", entry_id, student_id)

    async def _require_owned_entry(self, student_id: str, entry_id: UUID) -> WrongBook:
        result = await self.session.execute(
            select(WrongBook).where(WrongBook.id == entry_id, WrongBook.student_id == student_id)
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError(f"Wrong book entry {entry_id} not found")
        return entry
