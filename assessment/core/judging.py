"""
Answer judging.

Maps (question type, canonical answer, submitted answer) to an AnswerOutcome.
Short-answer questions cannot be auto-graded and always come back as
PENDING_MANUAL_REVIEW. A submission with the wrong shape for its type is
INCORRECT; judging never raises.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from assessment.core.enums import QuestionType

_SCALAR_TYPES = (str, int, float, bool)


class AnswerOutcome(str, Enum):
    """Grading state of a single answer."""

    UNANSWERED = "unanswered"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    PENDING_MANUAL_REVIEW = "pending_manual_review"

    @property
    def is_correct(self) -> bool | None:
        """True/False once graded, None while unanswered or awaiting a grader."""
        if self is AnswerOutcome.CORRECT:
            return True
        if self is AnswerOutcome.INCORRECT:
            return False
        return None

    @property
    def is_graded(self) -> bool:
        return self in (AnswerOutcome.CORRECT, AnswerOutcome.INCORRECT)

    @classmethod
    def from_bool(cls, passed: bool) -> AnswerOutcome:
        return cls.CORRECT if passed else cls.INCORRECT


def _strict_equal(expected: Any, submitted: Any) -> bool:
    if not isinstance(expected, _SCALAR_TYPES) or not isinstance(submitted, _SCALAR_TYPES):
        return False
    # bool is an int subclass; True must not match 1
    if isinstance(expected, bool) != isinstance(submitted, bool):
        return False
    if isinstance(expected, str) != isinstance(submitted, str):
        return False
    return expected == submitted


def _same_choice_set(expected: Any, submitted: Any) -> bool:
    if not isinstance(expected, list) or not isinstance(submitted, list):
        return False
    try:
        return sorted(expected) == sorted(submitted)
    except TypeError:
        return False


def _blanks_match(expected: Any, submitted: Any) -> bool:
    if not isinstance(expected, list) or not isinstance(submitted, list):
        return False
    for index, blank in enumerate(expected):
        if index >= len(submitted):
            return False
        answer = submitted[index]
        if not isinstance(blank, str) or not isinstance(answer, str):
            return False
        if blank.strip().lower() != answer.strip().lower():
            return False
    return True


def judge_answer(question_type: QuestionType | str, canonical: Any, submitted: Any) -> AnswerOutcome:
    """
    Classify a submitted answer.

    Args:
        question_type: Question type (enum or its stored string value)
        canonical: Canonical answer stored on the question
        submitted: Answer payload from the student

    Returns:
        CORRECT, INCORRECT, or PENDING_MANUAL_REVIEW for short answers
    """
    try:
        qtype = QuestionType(question_type)
    except ValueError:
        return AnswerOutcome.INCORRECT

    if qtype is QuestionType.SHORT_ANSWER:
        return AnswerOutcome.PENDING_MANUAL_REVIEW

    if qtype in (QuestionType.SINGLE_CHOICE, QuestionType.TRUE_FALSE):
        matched = _strict_equal(canonical, submitted)
    elif qtype is QuestionType.MULTIPLE_CHOICE:
        matched = _same_choice_set(canonical, submitted)
    else:
        matched = _blanks_match(canonical, submitted)

    return AnswerOutcome.from_bool(matched)
