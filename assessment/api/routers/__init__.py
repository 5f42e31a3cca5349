"""API routers for the assessment service."""

from assessment.api.routers import (
    exam_router,
    grading_router,
    practice_router,
    review_router,
)

__all__ = [
    "exam_router",
    "grading_router",
    "practice_router",
    "review_router",
]
