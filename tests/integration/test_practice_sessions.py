"""Practice session lifecycle against SQLite."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from assessment.core.enums import (
    AttemptType,
    DifficultyLevel,
    GradingTaskStatus,
    ItemSourceType,
    PracticeItemStatus,
    PracticeMode,
    PracticeSessionStatus,
)
from assessment.core.errors import BadRequestError, ConflictError, NotFoundError
from assessment.core.judging import AnswerOutcome
from assessment.db.models import ManualGradingTask, PracticeRecord, PracticeSession
from assessment.study.answers import AnswerService
from assessment.study.practice_session import PracticeSessionService
from assessment.study.wrong_book import WrongBookStore

STUDENT = "student-1"


def correct_answers(seed):
    return {
        seed.single.id: "B",
        seed.multiple.id: ["C", "A"],
        seed.true_false.id: True,
        seed.fill_blank.id: [" paris "],
        seed.short.id: "an essay",
    }


def wrong_answers(seed):
    return {
        seed.single.id: "A",
        seed.multiple.id: ["A"],
        seed.true_false.id: False,
        seed.fill_blank.id: ["Lyon"],
        seed.short.id: "an essay",
    }


@pytest.mark.asyncio
async def test_create_random_session(session, clock, seed):
    service = PracticeSessionService(session, clock)

    detail = await service.create_session(STUDENT, PracticeMode.RANDOM, question_count=3)

    assert detail.status is PracticeSessionStatus.ACTIVE
    assert detail.total_count == 3
    assert [item.seq for item in detail.items] == [1, 2, 3]
    assert len({item.question_id for item in detail.items}) == 3
    assert all(item.status is PracticeItemStatus.PENDING for item in detail.items)
    assert all(item.source_type is ItemSourceType.NORMAL for item in detail.items)
    assert detail.next_pending_seq == 1
    assert detail.config["question_count"] == 3


@pytest.mark.asyncio
async def test_session_is_capped_by_available_questions(session, clock, seed):
    detail = await PracticeSessionService(session, clock).create_session(STUDENT, PracticeMode.RANDOM, question_count=50)

    assert detail.total_count == 5


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, 101])
async def test_question_count_out_of_range(session, clock, seed, count):
    with pytest.raises(BadRequestError):
        await PracticeSessionService(session, clock).create_session(STUDENT, PracticeMode.RANDOM, question_count=count)


@pytest.mark.asyncio
async def test_mode_filters_are_required(session, clock, seed):
    service = PracticeSessionService(session, clock)

    with pytest.raises(BadRequestError):
        await service.create_session(STUDENT, PracticeMode.CATEGORY)
    with pytest.raises(BadRequestError):
        await service.create_session(STUDENT, PracticeMode.KNOWLEDGE, knowledge_point_ids=[])


@pytest.mark.asyncio
async def test_no_matching_questions_is_not_found(session, clock, seed):
    with pytest.raises(NotFoundError):
        await PracticeSessionService(session, clock).create_session(
            STUDENT, PracticeMode.CATEGORY, category_id=uuid4()
        )


@pytest.mark.asyncio
async def test_empty_review_session_is_not_found(session, clock, seed):
    with pytest.raises(NotFoundError):
        await PracticeSessionService(session, clock).create_session(STUDENT, PracticeMode.REVIEW)


@pytest.mark.asyncio
async def test_answering_every_item_completes_the_session(session, clock, seed):
    service = PracticeSessionService(session, clock)
    answers = correct_answers(seed)
    detail = await service.create_session(
        STUDENT, PracticeMode.KNOWLEDGE, knowledge_point_ids=[seed.algebra.id, seed.geometry.id]
    )
    assert detail.total_count == 3

    results = []
    for item in detail.items:
        clock.advance(seconds=30)
        results.append(await service.submit_item(STUDENT, detail.id, item.id, answers[item.question_id], duration=20))

    assert [r.is_completed for r in results] == [False, False, True]
    assert results[0].next_item_id == detail.items[1].id
    assert results[-1].next_item_id is None

    final = results[-1].session
    assert final.status is PracticeSessionStatus.COMPLETED
    assert final.answered_count == 3
    assert final.correct_count == 3
    assert final.correct_rate == 1.0
    assert final.total_duration == 60
    assert final.ended_at == clock.now()
    assert final.weak_knowledge_points == []

    records = (await session.execute(select(PracticeRecord))).scalars().all()
    assert len(records) == 3
    assert all(record.session_id == detail.id for record in records)
    assert all(record.attempt_type is AttemptType.PRACTICE for record in records)


@pytest.mark.asyncio
async def test_item_cannot_be_answered_twice(session, clock, seed):
    service = PracticeSessionService(session, clock)
    detail = await service.create_session(STUDENT, PracticeMode.RANDOM, question_count=2)
    item = detail.items[0]

    await service.submit_item(STUDENT, detail.id, item.id, "anything")

    with pytest.raises(ConflictError):
        await service.submit_item(STUDENT, detail.id, item.id, "again")


@pytest.mark.asyncio
async def test_completed_session_rejects_submissions(session, clock, seed):
    service = PracticeSessionService(session, clock)
    detail = await service.create_session(STUDENT, PracticeMode.RANDOM, question_count=2)

    summary = await service.complete_session(STUDENT, detail.id)
    assert summary.status is PracticeSessionStatus.COMPLETED
    again = await service.complete_session(STUDENT, detail.id)
    assert again.ended_at == summary.ended_at

    with pytest.raises(ConflictError):
        await service.submit_item(STUDENT, detail.id, detail.items[0].id, "B")


@pytest.mark.asyncio
async def test_sessions_are_private(session, clock, seed):
    service = PracticeSessionService(session, clock)
    detail = await service.create_session(STUDENT, PracticeMode.RANDOM, question_count=1)

    with pytest.raises(NotFoundError):
        await service.get_session("student-2", detail.id)
    with pytest.raises(NotFoundError):
        await service.submit_item("student-2", detail.id, detail.items[0].id, "B")


@pytest.mark.asyncio
async def test_weak_knowledge_points(session, clock, seed):
    service = PracticeSessionService(session, clock)
    detail = await service.create_session(STUDENT, PracticeMode.KNOWLEDGE, knowledge_point_ids=[seed.algebra.id])
    right, wrong = correct_answers(seed), wrong_answers(seed)

    for item in detail.items:
        answer = wrong[item.question_id] if item.question_id == seed.single.id else right[item.question_id]
        await service.submit_item(STUDENT, detail.id, item.id, answer, duration=15)

    summary = await service.get_session(STUDENT, detail.id)
    names = {kp.name: kp for kp in summary.weak_knowledge_points}
    assert set(names) == {"Algebra"}
    assert names["Algebra"].total == 2
    assert names["Algebra"].correct == 1
    assert names["Algebra"].correct_rate == 0.5
    assert summary.total_duration == 30


@pytest.mark.asyncio
async def test_current_item_walks_the_session(session, clock, seed):
    service = PracticeSessionService(session, clock)
    detail = await service.create_session(STUDENT, PracticeMode.RANDOM, question_count=2)

    current = await service.get_current_item(STUDENT, detail.id)
    assert current.completed is False
    assert current.item["seq"] == 1
    assert "answer" not in current.item["question"]

    for item in detail.items:
        await service.submit_item(STUDENT, detail.id, item.id, "x")

    current = await service.get_current_item(STUDENT, detail.id)
    assert current.completed is True
    assert current.item is None
    assert current.session.status is PracticeSessionStatus.COMPLETED


@pytest.mark.asyncio
async def test_list_sessions_paginates_newest_first(session, clock, seed):
    service = PracticeSessionService(session, clock)
    created = []
    for _ in range(3):
        clock.advance(minutes=1)
        created.append(await service.create_session(STUDENT, PracticeMode.RANDOM, question_count=1))
    await service.create_session("student-2", PracticeMode.RANDOM, question_count=1)

    page = await service.list_sessions(STUDENT, page=1, page_size=2)

    assert page.total == 3
    assert [s.id for s in page.data] == [created[2].id, created[1].id]

    with pytest.raises(BadRequestError):
        await service.list_sessions(STUDENT, page=0)


@pytest.mark.asyncio
async def test_short_answer_in_session_queues_grading(session, clock, seed):
    service = PracticeSessionService(session, clock)
    detail = await service.create_session(
        STUDENT, PracticeMode.CATEGORY, category_id=seed.category_id, question_count=5
    )
    item = next(i for i in detail.items if i.question_id == seed.short.id)

    result = await service.submit_item(STUDENT, detail.id, item.id, "a^2 + b^2 = c^2")

    assert result.result.outcome is AnswerOutcome.PENDING_MANUAL_REVIEW
    assert result.result.is_correct is None
    assert result.session.correct_count == 0

    task = (await session.execute(select(ManualGradingTask))).scalar_one()
    assert task.status is GradingTaskStatus.PENDING
    assert task.practice_record_id == result.result.practice_record_id


@pytest.mark.asyncio
async def test_review_session_prefers_due_wrong_book_entries(session, clock, seed):
    answers = AnswerService(session, clock)
    await answers.submit_answer(STUDENT, seed.single.id, "A")
    await answers.submit_answer(STUDENT, seed.true_false.id, False)
    clock.advance(days=1)

    service = PracticeSessionService(session, clock)
    detail = await service.create_session(STUDENT, PracticeMode.REVIEW, question_count=5)

    assert detail.total_count == 2
    assert all(item.source_type is ItemSourceType.REVIEW for item in detail.items)
    assert all(item.source_ref_id is not None for item in detail.items)

    single_item = next(item for item in detail.items if item.question_id == seed.single.id)
    result = await service.submit_review_item(STUDENT, single_item.id, "B")
    assert result.result.is_correct is True

    entry = await WrongBookStore(session, clock).get_entry(STUDENT, seed.single.id)
    assert entry.review_level == 1
    assert entry.last_review_result is True

    record = await session.get(PracticeRecord, result.result.practice_record_id)
    assert record.attempt_type is AttemptType.REVIEW


@pytest.mark.asyncio
async def test_review_item_lookup_requires_review_session(session, clock, seed):
    service = PracticeSessionService(session, clock)
    detail = await service.create_session(STUDENT, PracticeMode.RANDOM, question_count=1)

    with pytest.raises(NotFoundError):
        await service.submit_review_item(STUDENT, detail.items[0].id, "B")


async def seed_admin_sessions(session, clock, seed):
    """
    One abandoned session from yesterday, then today: a completed random session
    (2/2 correct), a completed knowledge session (0/1) and an active one.
    """
    service = PracticeSessionService(session, clock)
    old = await service.create_session(STUDENT, PracticeMode.RANDOM, question_count=1)
    (await session.get(PracticeSession, old.id)).status = PracticeSessionStatus.ABANDONED
    await session.flush()

    clock.advance(days=1)
    first = await service.create_session(
        STUDENT, PracticeMode.RANDOM, question_count=2, difficulty=DifficultyLevel.EASY
    )
    for item in first.items:
        await service.submit_item(STUDENT, first.id, item.id, correct_answers(seed)[item.question_id])

    clock.advance(minutes=1)
    second = await service.create_session(
        "student-2", PracticeMode.KNOWLEDGE, question_count=1, knowledge_point_ids=[seed.algebra.id]
    )
    item = second.items[0]
    await service.submit_item("student-2", second.id, item.id, wrong_answers(seed)[item.question_id])

    clock.advance(minutes=1)
    active = await service.create_session("learner-3", PracticeMode.RANDOM, question_count=1)
    return old, first, second, active


@pytest.mark.asyncio
async def test_admin_lists_sessions_of_every_student(session, clock, seed):
    old, first, second, active = await seed_admin_sessions(session, clock, seed)
    service = PracticeSessionService(session, clock)

    everything = await service.list_sessions_for_admin()
    assert [summary.id for summary in everything.data] == [active.id, second.id, first.id, old.id]

    by_keyword = await service.list_sessions_for_admin(keyword="student")
    assert [summary.id for summary in by_keyword.data] == [second.id, first.id, old.id]

    by_student = await service.list_sessions_for_admin(student_id="student-2")
    assert [summary.student_id for summary in by_student.data] == ["student-2"]

    abandoned = await service.list_sessions_for_admin(status=PracticeSessionStatus.ABANDONED)
    assert [summary.id for summary in abandoned.data] == [old.id]

    knowledge = await service.list_sessions_for_admin(mode=PracticeMode.KNOWLEDGE, page_size=1)
    assert knowledge.total == 1
    assert knowledge.data[0].correct_rate == 0.0


@pytest.mark.asyncio
async def test_admin_reads_any_session(session, clock, seed):
    service = PracticeSessionService(session, clock)
    detail = await service.create_session("learner-3", PracticeMode.RANDOM, question_count=2)

    fetched = await service.get_session_for_admin(detail.id)

    assert fetched.student_id == "learner-3"
    assert [item.id for item in fetched.items] == [item.id for item in detail.items]
    with pytest.raises(NotFoundError):
        await service.get_session_for_admin(uuid4())


@pytest.mark.asyncio
async def test_admin_stats(session, clock, seed):
    await seed_admin_sessions(session, clock, seed)

    stats = await PracticeSessionService(session, clock).get_admin_stats()

    assert stats.total_sessions == 4
    assert stats.active_sessions == 1
    assert stats.completed_sessions == 2
    assert stats.abandoned_sessions == 1
    assert stats.today_created_sessions == 3
    assert stats.avg_correct_rate == 0.6667
    assert [(row.mode, row.count) for row in stats.by_mode] == [
        (PracticeMode.RANDOM, 3),
        (PracticeMode.KNOWLEDGE, 1),
    ]


@pytest.mark.asyncio
async def test_admin_stats_on_empty_platform(session, clock, seed):
    stats = await PracticeSessionService(session, clock).get_admin_stats()

    assert stats.total_sessions == 0
    assert stats.today_created_sessions == 0
    assert stats.avg_correct_rate == 0.0
    assert stats.by_mode == []
