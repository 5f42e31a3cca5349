"""Guard-rail tests for ManualGradingService against a mocked session."""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from assessment.core.clock import FixedClock
from assessment.core.enums import AttemptType, GradingTaskStatus
from assessment.core.errors import BadRequestError, ConflictError, NotFoundError
from assessment.core.events import AnswerSubmitted
from assessment.core.judging import AnswerOutcome
from assessment.grading.manual_grading import ManualGradingService

NOW = datetime(2026, 2, 1, 9, 0, 0)


def make_task(status=GradingTaskStatus.PENDING, assignee_id=None):
    return SimpleNamespace(
        id=uuid4(),
        practice_record_id=uuid4(),
        status=status,
        assignee_id=assignee_id,
        assigned_at=None,
    )


def make_service(task=None):
    session = AsyncMock()
    session.get.return_value = task
    return ManualGradingService(session, FixedClock(NOW)), session


@pytest.mark.asyncio
async def test_missing_task_is_not_found():
    service, _ = make_service(None)

    with pytest.raises(NotFoundError):
        await service.claim_task(uuid4(), "grader-1")


@pytest.mark.asyncio
async def test_cannot_claim_done_task():
    service, _ = make_service(make_task(GradingTaskStatus.DONE, "grader-1"))

    with pytest.raises(ConflictError):
        await service.claim_task(uuid4(), "grader-1")


@pytest.mark.asyncio
async def test_cannot_claim_task_held_by_another_grader():
    service, _ = make_service(make_task(GradingTaskStatus.ASSIGNED, "grader-1"))

    with pytest.raises(ConflictError):
        await service.claim_task(uuid4(), "grader-2")


@pytest.mark.asyncio
async def test_submit_by_another_grader_conflicts():
    service, _ = make_service(make_task(GradingTaskStatus.ASSIGNED, "grader-1"))

    with pytest.raises(ConflictError):
        await service.submit_task(uuid4(), "grader-2", score=80, is_passed=True)


@pytest.mark.asyncio
@pytest.mark.parametrize("score", [-1, 101])
async def test_submit_rejects_out_of_range_score(score):
    service, session = make_service(make_task(GradingTaskStatus.ASSIGNED, "grader-1"))

    with pytest.raises(BadRequestError):
        await service.submit_task(uuid4(), "grader-1", score=score, is_passed=False)
    session.flush.assert_not_called()


@pytest.mark.asyncio
async def test_reopen_requires_done_task():
    service, _ = make_service(make_task(GradingTaskStatus.ASSIGNED, "grader-1"))

    with pytest.raises(ConflictError):
        await service.reopen_task(uuid4(), "needs another look")


@pytest.mark.asyncio
async def test_exam_events_do_not_create_tasks():
    service, session = make_service()

    await service.handle_answer_submitted(
        AnswerSubmitted(
            student_id="student-1",
            question_id=uuid4(),
            attempt_type=AttemptType.EXAM,
            outcome=AnswerOutcome.PENDING_MANUAL_REVIEW,
            answer="essay",
            submitted_at=NOW,
            exam_attempt_id=uuid4(),
        )
    )

    session.get.assert_not_called()
    session.execute.assert_not_called()
