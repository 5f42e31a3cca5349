"""
Scheduling Module - background jobs running inside the API process.

Components:
- retry: RetryPolicy fixed-delay retries
- base: SingleFlight guard and PeriodicJob asyncio loop
- exam_timeout: ExamTimeoutScanner auto-finishing overdue attempts
- review_tasks: ReviewTaskScheduler generating daily review tasks
- manager: process-wide scheduler instances
"""

from assessment.scheduling.base import JobStatus, PeriodicJob, SingleFlight
from assessment.scheduling.exam_timeout import ExamTimeoutScanner, TimeoutScanResult, TimeoutSummary
from assessment.scheduling.manager import Schedulers, build_schedulers, get_schedulers
from assessment.scheduling.retry import RetryPolicy
from assessment.scheduling.review_tasks import DailyTaskSummary, GenerationResult, ReviewTaskScheduler

__all__ = [
    "JobStatus",
    "PeriodicJob",
    "SingleFlight",
    "ExamTimeoutScanner",
    "TimeoutScanResult",
    "TimeoutSummary",
    "Schedulers",
    "build_schedulers",
    "get_schedulers",
    "RetryPolicy",
    "DailyTaskSummary",
    "GenerationResult",
    "ReviewTaskScheduler",
]
