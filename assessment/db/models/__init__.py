# SQLAlchemy models
from .base import Base
from .exam import (
    ExamAttempt,
    ExamAttemptItem,
    ExamPaper,
    ExamPaperItem,
)
from .grading import ManualGradingTask
from .practice import (
    PracticeRecord,
    PracticeSession,
    PracticeSessionItem,
)
from .question import (
    KnowledgePoint,
    Question,
    question_knowledge_points,
    question_tags,
)
from .review import (
    ReviewDailyTask,
    WrongBook,
)

__all__ = [
    # Base
    "Base",
    # Question bank (read-only)
    "Question",
    "KnowledgePoint",
    "question_knowledge_points",
    "question_tags",
    # Practice
    "PracticeSession",
    "PracticeSessionItem",
    "PracticeRecord",
    # Review
    "WrongBook",
    "ReviewDailyTask",
    # Exam
    "ExamPaper",
    "ExamPaperItem",
    "ExamAttempt",
    "ExamAttemptItem",
    # Grading
    "ManualGradingTask",
]
