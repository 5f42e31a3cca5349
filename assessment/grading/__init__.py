"""Manual grading of short-answer submissions."""

from assessment.grading.manual_grading import ManualGradingService

__all__ = ["ManualGradingService"]
