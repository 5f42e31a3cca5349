"""
Exam Module - published papers and timed attempts.

Components:
- service: ExamService paper authoring and attempt state machine
- scoring: score aggregation over attempt items
"""

from assessment.exam.scoring import ScoreSummary, summarize_scores
from assessment.exam.service import ExamService, PaperItemInput

__all__ = [
    "ExamService",
    "PaperItemInput",
    "ScoreSummary",
    "summarize_scores",
]
