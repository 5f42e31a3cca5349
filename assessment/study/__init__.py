"""
Study Module - self-paced practice and spaced review.

Components:
- questions: QuestionCatalog read access to the question bank
- review_plan: spaced-repetition level and due-date rules
- wrong_book: WrongBookStore for missed questions and daily review tasks
- answers: AnswerService judging and recording single answers
- practice_session: PracticeSessionService for multi-question sessions
"""

from assessment.study.answers import AnswerResult, AnswerService, SubmissionContext
from assessment.study.practice_session import PracticeSessionService
from assessment.study.questions import QuestionCatalog, QuestionFilters
from assessment.study.review_plan import ReviewPlan, plan_after_review, plan_after_wrong_answer
from assessment.study.wrong_book import WrongBookStore

__all__ = [
    "AnswerResult",
    "AnswerService",
    "SubmissionContext",
    "PracticeSessionService",
    "QuestionCatalog",
    "QuestionFilters",
    "ReviewPlan",
    "plan_after_review",
    "plan_after_wrong_answer",
    "WrongBookStore",
]
