"""
Enumerations shared by the models, services and API.

Values are the strings stored in the database.
"""

from __future__ import annotations

from enum import Enum


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    FILL_BLANK = "fill_blank"
    SHORT_ANSWER = "short_answer"


class DifficultyLevel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class PracticeMode(str, Enum):
    RANDOM = "random"
    CATEGORY = "category"
    KNOWLEDGE = "knowledge"
    REVIEW = "review"


class PracticeSessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class PracticeItemStatus(str, Enum):
    PENDING = "pending"
    ANSWERED = "answered"


class ItemSourceType(str, Enum):
    NORMAL = "normal"
    REVIEW = "review"


class AttemptType(str, Enum):
    PRACTICE = "practice"
    REVIEW = "review"
    EXAM = "exam"


class ReviewTaskStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"


class ExamPaperStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class ExamAttemptStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self is not ExamAttemptStatus.ACTIVE


class GradingTaskStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    DONE = "done"
    REOPEN = "reopen"
