"""
Core Module - shared building blocks for the assessment engine.

Components:
- errors: NotFound / Conflict / BadRequest / Transient taxonomy
- clock: injectable clock and UTC run-date helpers
- enums: stored status and type values
- judging: AnswerOutcome and the answer judging function
- events: AnswerSubmitted domain event and dispatcher
- pagination: Page container and paginate() helper
"""

from assessment.core.clock import Clock, FixedClock, SystemClock
from assessment.core.errors import (
    AssessmentError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    TransientError,
)
from assessment.core.events import AnswerSubmitted, EventDispatcher
from assessment.core.judging import AnswerOutcome, judge_answer
from assessment.core.pagination import Page

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "AssessmentError",
    "BadRequestError",
    "ConflictError",
    "NotFoundError",
    "TransientError",
    "AnswerSubmitted",
    "EventDispatcher",
    "AnswerOutcome",
    "judge_answer",
    "Page",
]
