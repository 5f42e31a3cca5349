"""
In-process domain events.

AnswerSubmitted is published once per judged answer (practice, review or exam).
The wrong book and the manual grading queue subscribe to it instead of being
called inline by the submission paths.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable
from uuid import UUID

from loguru import logger

from assessment.core.enums import AttemptType
from assessment.core.judging import AnswerOutcome


@dataclass(frozen=True)
class AnswerSubmitted:
    """A student's answer has been judged and persisted."""

    student_id: str
    question_id: UUID
    attempt_type: AttemptType
    outcome: AnswerOutcome
    answer: Any
    submitted_at: datetime
    practice_record_id: UUID | None = None
    session_id: UUID | None = None
    session_item_id: UUID | None = None
    exam_attempt_id: UUID | None = None


EventHandler = Callable[[AnswerSubmitted], Awaitable[None]]


class EventDispatcher:
    """
    Ordered fan-out of events to async handlers.

    Handlers run sequentially inside the publisher's unit of work; a handler
    error propagates so the surrounding transaction rolls back.
    """

    def __init__(self, handlers: list[EventHandler] | None = None):
        self._handlers: list[EventHandler] = list(handlers or [])

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    @property
    def handlers(self) -> list[EventHandler]:
        return list(self._handlers)

    async def publish(self, event: AnswerSubmitted) -> None:
        logger.debug(
            "Publishing AnswerSubmitted: student={} question={} type={} outcome={}",
            event.student_id,
            event.question_id,
            event.attempt_type.value,
            event.outcome.value,
        )
        for handler in self._handlers:
            await handler(event)
