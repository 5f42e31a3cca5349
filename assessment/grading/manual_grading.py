"""
Manual grading of short-answer practice submissions.

Task lifecycle:

    pending -> assigned -> done
                  ^          |
                  |          v
                  +------ reopen

Submitting a grade writes back to the source PracticeRecord in the same
flush, so the record's outcome always follows the task's is_passed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from assessment.core.clock import Clock, SystemClock
from assessment.core.enums import AttemptType, GradingTaskStatus
from assessment.core.errors import BadRequestError, ConflictError, NotFoundError
from assessment.core.events import AnswerSubmitted
from assessment.core.judging import AnswerOutcome
from assessment.core.pagination import Page, paginate
from assessment.db.models import ManualGradingTask, PracticeRecord, Question

MAX_GRADING_SCORE = 100


@dataclass
class GradingTaskSummary:
    id: UUID
    practice_record_id: UUID
    student_id: str
    question_id: UUID
    status: GradingTaskStatus
    assignee_id: str | None
    assigned_at: datetime | None
    score: int | None
    is_passed: bool | None
    submitted_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None
    question_title: str | None = None


@dataclass
class GradingTaskDetail(GradingTaskSummary):
    feedback: str | None = None
    tags: list[str] = field(default_factory=list)
    question: dict[str, Any] | None = None
    practice_record: dict[str, Any] | None = None


def _summary(task: ManualGradingTask, question: Question | None = None) -> GradingTaskSummary:
    return GradingTaskSummary(
        id=task.id,
        practice_record_id=task.practice_record_id,
        student_id=task.student_id,
        question_id=task.question_id,
        status=task.status,
        assignee_id=task.assignee_id,
        assigned_at=task.assigned_at,
        score=task.score,
        is_passed=task.is_passed,
        submitted_at=task.submitted_at,
        created_at=task.created_at,
        updated_at=task.updated_at,
        question_title=question.title if question else None,
    )


class ManualGradingService:
    """Grading task queue and write-back to practice records."""

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    async def create_task_from_practice_record(self, record: PracticeRecord) -> ManualGradingTask:
        """Create the pending task for a record; returns the existing one if present."""
        result = await self.session.execute(
            select(ManualGradingTask).where(ManualGradingTask.practice_record_id == record.id)
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            return existing

        now = self.clock.now()
        task = ManualGradingTask(
            practice_record_id=record.id,
            student_id=record.student_id,
            question_id=record.question_id,
            status=GradingTaskStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.session.add(task)
        await self.session.flush()
        logger.info("Manual grading task created: id={} record={}", task.id, record.id)
        return task

    async def handle_answer_submitted(self, event: AnswerSubmitted) -> None:
        """AnswerSubmitted consumer; exam items are graded on the attempt instead."""
        if event.attempt_type is AttemptType.EXAM or event.practice_record_id is None:
            return
        if event.outcome is not AnswerOutcome.PENDING_MANUAL_REVIEW:
            return

        record = await self.session.get(PracticeRecord, event.practice_record_id)
        if record is None:
            logger.warning("Practice record {} vanished before task creation", event.practice_record_id)
            return
        await self.create_task_from_practice_record(record)

    async def list_tasks(
        self,
        page: int = 1,
        page_size: int = 10,
        status: GradingTaskStatus | None = None,
        assignee_id: str | None = None,
        keyword: str | None = None,
    ) -> Page[GradingTaskSummary]:
        stmt = select(ManualGradingTask, Question).join(Question, Question.id == ManualGradingTask.question_id)
        if status is not None:
            stmt = stmt.where(ManualGradingTask.status == status)
        if assignee_id:
            stmt = stmt.where(ManualGradingTask.assignee_id == assignee_id)
        if keyword and keyword.strip():
            pattern = f"%{keyword.strip()}%"
            stmt = stmt.where(Question.title.ilike(pattern) | ManualGradingTask.student_id.ilike(pattern))
        stmt = stmt.order_by(ManualGradingTask.created_at.desc(), ManualGradingTask.id)

        return await paginate(
            self.session,
            stmt,
            page,
            page_size,
            transform=lambda row: _summary(row[0], row[1]),
            scalars=False,
        )

    async def get_task(self, task_id: UUID) -> GradingTaskDetail:
        task = await self._require_task(task_id)
        question = await self.session.get(Question, task.question_id)
        record = await self.session.get(PracticeRecord, task.practice_record_id)

        return GradingTaskDetail(
            **vars(_summary(task, question)),
            feedback=task.feedback,
            tags=list(task.tags or []),
            question=(
                {
                    "id": question.id,
                    "type": question.type,
                    "title": question.title,
                    "answer": question.answer,
                    "explanation": question.explanation,
                    "difficulty": question.difficulty,
                }
                if question
                else None
            ),
            practice_record=(
                {
                    "id": record.id,
                    "submitted_answer": record.submitted_answer,
                    "duration": record.duration,
                    "outcome": record.outcome,
                    "created_at": record.created_at,
                }
                if record
                else None
            ),
        )

    async def claim_task(self, task_id: UUID, assignee_id: str) -> GradingTaskDetail:
        """
        Assign a task to the calling grader.

        Raises:
            NotFoundError: task missing
            ConflictError: task done, or held by another grader
        """
        task = await self._require_task(task_id)
        if task.status is GradingTaskStatus.DONE:
            raise ConflictError("Grading task is already done")
        if task.assignee_id and task.assignee_id != assignee_id:
            raise ConflictError("Grading task is assigned to another grader")

        if task.status is not GradingTaskStatus.ASSIGNED or task.assignee_id != assignee_id:
            now = self.clock.now()
            task.status = GradingTaskStatus.ASSIGNED
            task.assignee_id = assignee_id
            task.assigned_at = task.assigned_at or now
            task.updated_at = now
            await self.session.flush()
            logger.info("Grading task claimed: id={} assignee={}", task_id, assignee_id)

        return await self.get_task(task_id)

    async def submit_task(
        self,
        task_id: UUID,
        grader_id: str,
        score: int,
        is_passed: bool,
        feedback: str | None = None,
        tags: Sequence[str] | None = None,
    ) -> GradingTaskDetail:
        """
        Record a grade on the task and its practice record.

        Raises:
            NotFoundError: task or practice record missing
            ConflictError: task done, or held by another grader
            BadRequestError: score outside 0..100
        """
        task = await self._require_task(task_id)
        if task.status is GradingTaskStatus.DONE:
            raise ConflictError("Grading task is already done")
        if task.assignee_id and task.assignee_id != grader_id:
            raise ConflictError("Grading task is assigned to another grader")
        if score < 0 or score > MAX_GRADING_SCORE:
            raise BadRequestError(f"Score must be between 0 and {MAX_GRADING_SCORE}")

        record = await self.session.get(PracticeRecord, task.practice_record_id)
        if record is None:
            raise NotFoundError(f"Practice record {task.practice_record_id} not found")

        now = self.clock.now()
        feedback = feedback.strip() if feedback else None
        feedback = feedback or None
        tags = list(tags) if tags else None

        task.status = GradingTaskStatus.DONE
        task.assignee_id = grader_id
        task.assigned_at = task.assigned_at or now
        task.score = score
        task.feedback = feedback
        task.tags = tags
        task.is_passed = is_passed
        task.submitted_at = now
        task.updated_at = now

        record.score = score
        record.grading_feedback = feedback
        record.grading_tags = tags
        record.is_passed = is_passed
        record.graded_by = grader_id
        record.graded_at = now
        record.outcome = AnswerOutcome.from_bool(is_passed)

        await self.session.flush()
        logger.info(
            "Grading task submitted: id={} grader={} score={} passed={}",
            task_id,
            grader_id,
            score,
            is_passed,
        )
        return await self.get_task(task_id)

    async def reopen_task(self, task_id: UUID, reason: str | None = None) -> GradingTaskDetail:
        """
        Reopen a finished task and clear the grade from its practice record.

        Raises:
            NotFoundError: task or practice record missing
            ConflictError: task not done
        """
        task = await self._require_task(task_id)
        if task.status is not GradingTaskStatus.DONE:
            raise ConflictError("Only done grading tasks can be reopened")

        record = await self.session.get(PracticeRecord, task.practice_record_id)
        if record is None:
            raise NotFoundError(f"Practice record {task.practice_record_id} not found")

        reason = reason.strip() if reason else ""
        task.status = GradingTaskStatus.REOPEN
        task.score = None
        task.feedback = f"Reopen reason: {reason}" if reason else None
        task.tags = None
        task.is_passed = None
        task.submitted_at = None
        task.updated_at = self.clock.now()

        record.score = None
        record.grading_feedback = None
        record.grading_tags = None
        record.is_passed = None
        record.graded_by = None
        record.graded_at = None
        record.outcome = AnswerOutcome.PENDING_MANUAL_REVIEW

        await self.session.flush()
        logger.info("Grading task reopened: id={}", task_id)
        return await self.get_task(task_id)

    async def _require_task(self, task_id: UUID) -> ManualGradingTask:
        task = await self.session.get(ManualGradingTask, task_id)
        if task is None:
            raise NotFoundError(f"Grading task {task_id} not found")
        return task
