"""
Answer submission path shared by standalone practice and practice sessions.

judge -> persist PracticeRecord -> publish AnswerSubmitted
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from assessment.core.clock import Clock, SystemClock
from assessment.core.enums import AttemptType, PracticeMode
from assessment.core.events import AnswerSubmitted, EventDispatcher
from assessment.core.judging import AnswerOutcome, judge_answer
from assessment.db.models import PracticeRecord
from assessment.study.questions import QuestionCatalog


@dataclass
class SubmissionContext:
    """Session details attached to an answer submitted inside a practice session."""

    session_id: UUID
    session_item_id: UUID
    mode: PracticeMode


@dataclass
class AnswerResult:
    """Judging result returned to the student."""

    practice_record_id: UUID
    outcome: AnswerOutcome
    is_correct: bool | None
    correct_answer: Any
    explanation: str | None
    options: Any = None


def default_dispatcher(session: AsyncSession, clock: Clock) -> EventDispatcher:
    """Dispatcher wired with the wrong book and manual grading consumers."""
    from assessment.grading.manual_grading import ManualGradingService
    from assessment.study.wrong_book import WrongBookStore

    return EventDispatcher(
        [
            WrongBookStore(session, clock).handle_answer_submitted,
            ManualGradingService(session, clock).handle_answer_submitted,
        ]
    )


class AnswerService:
    """Judges and records answers."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        catalog: QuestionCatalog | None = None,
        dispatcher: EventDispatcher | None = None,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.catalog = catalog or QuestionCatalog(session)
        self.dispatcher = dispatcher or default_dispatcher(session, self.clock)

    async def submit_answer(
        self,
        student_id: str,
        question_id: UUID,
        answer: Any,
        duration: int = 0,
        context: SubmissionContext | None = None,
    ) -> AnswerResult:
        """
        Judge an answer and write its practice record.

        Args:
            student_id: Submitting student
            question_id: Answered question
            answer: Raw answer payload
            duration: Seconds spent on the question
            context: Session context when submitted from a practice session

        Returns:
            AnswerResult with the outcome and the canonical answer

        Raises:
            NotFoundError: if the question does not exist
        """
        question = await self.catalog.require(question_id)
        outcome = judge_answer(question.type, question.answer, answer)
        attempt_type = (
            AttemptType.REVIEW
            if context is not None and context.mode is PracticeMode.REVIEW
            else AttemptType.PRACTICE
        )
        now = self.clock.now()

        record = PracticeRecord(
            student_id=student_id,
            question_id=question_id,
            session_id=context.session_id if context else None,
            session_item_id=context.session_item_id if context else None,
            attempt_type=attempt_type,
            submitted_answer=answer,
            outcome=outcome,
            duration=max(0, int(duration or 0)),
            created_at=now,
        )
        self.session.add(record)
        await self.session.flush()

        await self.dispatcher.publish(
            AnswerSubmitted(
                student_id=student_id,
                question_id=question_id,
                attempt_type=attempt_type,
                outcome=outcome,
                answer=answer,
                submitted_at=now,
                practice_record_id=record.id,
                session_id=record.session_id,
                session_item_id=record.session_item_id,
            )
        )

        logger.info(
            "Answer recorded: student={} question={} type={} outcome={}",
            student_id,
            question_id,
            attempt_type.value,
            outcome.value,
        )
        return AnswerResult(
            practice_record_id=record.id,
            outcome=outcome,
            is_correct=outcome.is_correct,
            correct_answer=question.answer,
            explanation=question.explanation,
            options=question.options,
        )
