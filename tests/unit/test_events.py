"""Tests for the AnswerSubmitted dispatcher."""

from datetime import datetime
from uuid import uuid4

import pytest

from assessment.core.enums import AttemptType
from assessment.core.events import AnswerSubmitted, EventDispatcher
from assessment.core.judging import AnswerOutcome


def make_event():
    return AnswerSubmitted(
        student_id="student-1",
        question_id=uuid4(),
        attempt_type=AttemptType.PRACTICE,
        outcome=AnswerOutcome.INCORRECT,
        answer="B",
        submitted_at=datetime(2026, 2, 1),
    )


@pytest.mark.asyncio
async def test_handlers_run_in_subscription_order():
    seen = []

    async def first(event):
        seen.append(("first", event.answer))

    async def second(event):
        seen.append(("second", event.answer))

    dispatcher = EventDispatcher([first])
    dispatcher.subscribe(second)
    await dispatcher.publish(make_event())

    assert seen == [("first", "B"), ("second", "B")]


@pytest.mark.asyncio
async def test_handler_error_propagates():
    async def broken(event):
        raise RuntimeError("handler failed")

    with pytest.raises(RuntimeError):
        await EventDispatcher([broken]).publish(make_event())
