"""
Practice session engine.

A session is created with a fixed, ordered item set and moves one way from
active to completed: either every item gets answered or the student closes it.

Modes:
- random: any questions matching the optional type/difficulty/tag/knowledge filters
- category: as random, restricted to one category (categoryId required)
- knowledge: questions linked to the given knowledge points (knowledgePointIds required)
- review: today's pending review tasks, falling back to due wrong-book entries
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Any, Iterable
from uuid import UUID

from loguru import logger
from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from assessment.core.clock import Clock, SystemClock, run_date_for
from assessment.core.enums import (
    DifficultyLevel,
    ItemSourceType,
    PracticeItemStatus,
    PracticeMode,
    PracticeSessionStatus,
    QuestionType,
)
from assessment.core.errors import BadRequestError, ConflictError, NotFoundError
from assessment.core.judging import AnswerOutcome
from assessment.core.pagination import Page, paginate
from assessment.db.models import (
    KnowledgePoint,
    PracticeRecord,
    PracticeSession,
    PracticeSessionItem,
    question_knowledge_points,
)
from assessment.study.answers import AnswerResult, AnswerService, SubmissionContext
from assessment.study.questions import QuestionCatalog, QuestionFilters, question_payload
from assessment.study.wrong_book import WrongBookStore

DEFAULT_QUESTION_COUNT = 10
MAX_QUESTION_COUNT = 100
WEAK_KNOWLEDGE_POINT_LIMIT = 5


# =============================================================================
# Result types
# =============================================================================


@dataclass
class WeakKnowledgePoint:
    """Per-session accuracy on one knowledge point."""

    id: UUID
    name: str
    total: int
    correct: int
    correct_rate: float


@dataclass
class SessionMetrics:
    total_duration: int = 0
    weak_knowledge_points: list[WeakKnowledgePoint] = field(default_factory=list)


@dataclass
class SessionSummary:
    id: UUID
    student_id: str
    mode: PracticeMode
    status: PracticeSessionStatus
    config: dict[str, Any]
    total_count: int
    answered_count: int
    correct_count: int
    correct_rate: float
    total_duration: int
    started_at: datetime
    ended_at: datetime | None
    created_at: datetime | None
    weak_knowledge_points: list[WeakKnowledgePoint] = field(default_factory=list)


@dataclass
class SessionItemView:
    id: UUID
    question_id: UUID
    seq: int
    source_type: ItemSourceType
    source_ref_id: UUID | None
    status: PracticeItemStatus
    answered_at: datetime | None


@dataclass
class SessionDetail(SessionSummary):
    next_pending_seq: int | None = None
    items: list[SessionItemView] = field(default_factory=list)


@dataclass
class CurrentItem:
    """Resume point of a session; item is None once nothing is left."""

    session: SessionSummary
    completed: bool
    item: dict[str, Any] | None = None


@dataclass
class SessionSubmitResult:
    session: SessionSummary
    is_completed: bool
    next_item_id: UUID | None
    result: AnswerResult


@dataclass
class ModeCount:
    mode: PracticeMode
    count: int


@dataclass
class AdminSessionStats:
    """Platform-wide practice counters; today is the clock's UTC day."""

    total_sessions: int
    active_sessions: int
    completed_sessions: int
    abandoned_sessions: int
    today_created_sessions: int
    avg_correct_rate: float
    by_mode: list[ModeCount] = field(default_factory=list)


@dataclass
class _Candidate:
    question_id: UUID
    source_type: ItemSourceType
    source_ref_id: UUID | None = None


# =============================================================================
# Metrics helpers
# =============================================================================


def rank_weak_knowledge_points(
    stats: Iterable[WeakKnowledgePoint],
    limit: int = WEAK_KNOWLEDGE_POINT_LIMIT,
) -> list[WeakKnowledgePoint]:
    """
    Knowledge points answered with less than full accuracy.

    Sorted by correct rate ascending, then attempt count descending, then name.
    """
    weak = [item for item in stats if item.total > 0 and item.correct_rate < 1]
    weak.sort(key=lambda item: (item.correct_rate, -item.total, item.name))
    return weak[:limit]


def fallback_duration(started_at: datetime | None, ended_at: datetime | None) -> int:
    """Wall-clock seconds between start and end, 0 when either is missing."""
    if started_at is None or ended_at is None or ended_at <= started_at:
        return 0
    return round((ended_at - started_at).total_seconds())


def _correct_rate(correct: int, total: int) -> float:
    return round(correct / total, 4) if total > 0 else 0.0


class PracticeSessionService:
    """Practice session lifecycle and reporting."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        catalog: QuestionCatalog | None = None,
        answers: AnswerService | None = None,
        default_question_count: int = DEFAULT_QUESTION_COUNT,
        max_question_count: int = MAX_QUESTION_COUNT,
    ):
        self.session = session
        self.default_question_count = default_question_count
        self.max_question_count = max_question_count
        self.clock = clock or SystemClock()
        self.catalog = catalog or QuestionCatalog(session)
        self.answers = answers or AnswerService(session, self.clock, self.catalog)
        self.wrong_book = WrongBookStore(session, self.clock)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def create_session(
        self,
        student_id: str,
        mode: PracticeMode,
        question_count: int | None = None,
        category_id: UUID | None = None,
        knowledge_point_ids: list[UUID] | None = None,
        type: QuestionType | None = None,
        difficulty: DifficultyLevel | None = None,
        tag_ids: list[UUID] | None = None,
    ) -> SessionDetail:
        """
        Start a practice session.

        Raises:
            BadRequestError: mode-specific filter missing or count out of range
            NotFoundError: no question matched
        """
        count = self.default_question_count if question_count is None else question_count
        if count < 1 or count > self.max_question_count:
            raise BadRequestError(f"questionCount must be between 1 and {self.max_question_count}")
        if mode is PracticeMode.CATEGORY and category_id is None:
            raise BadRequestError("category mode requires categoryId")
        if mode is PracticeMode.KNOWLEDGE and not knowledge_point_ids:
            raise BadRequestError("knowledge mode requires knowledgePointIds")

        if mode is PracticeMode.REVIEW:
            candidates = await self._select_review_candidates(student_id, count)
        else:
            filters = QuestionFilters(
                category_id=category_id if mode is PracticeMode.CATEGORY else None,
                type=type,
                difficulty=difficulty,
                tag_ids=list(tag_ids or []),
                knowledge_point_ids=list(knowledge_point_ids or []),
            )
            questions = await self.catalog.pick_random(filters, count)
            candidates = [_Candidate(q.id, ItemSourceType.NORMAL) for q in questions]

        if not candidates:
            raise NotFoundError("No questions available for this practice session")

        now = self.clock.now()
        practice = PracticeSession(
            student_id=student_id,
            mode=mode,
            config={
                "question_count": count,
                "category_id": str(category_id) if category_id else None,
                "knowledge_point_ids": [str(kp) for kp in knowledge_point_ids or []],
                "type": type.value if type else None,
                "difficulty": difficulty.value if difficulty else None,
                "tag_ids": [str(tag) for tag in tag_ids or []],
            },
            status=PracticeSessionStatus.ACTIVE,
            total_count=len(candidates),
            answered_count=0,
            correct_count=0,
            started_at=now,
            created_at=now,
        )
        self.session.add(practice)
        await self.session.flush()

        self.session.add_all(
            [
                PracticeSessionItem(
                    session_id=practice.id,
                    question_id=candidate.question_id,
                    seq=index,
                    source_type=candidate.source_type,
                    source_ref_id=candidate.source_ref_id,
                    status=PracticeItemStatus.PENDING,
                )
                for index, candidate in enumerate(candidates, start=1)
            ]
        )
        await self.session.flush()

        logger.info(
            "Practice session created: id={} student={} mode={} items={}",
            practice.id,
            student_id,
            mode.value,
            len(candidates),
        )
        return await self._to_detail(practice)

    async def submit_item(
        self,
        student_id: str,
        session_id: UUID,
        item_id: UUID,
        answer: Any,
        duration: int = 0,
    ) -> SessionSubmitResult:
        """
        Answer one item of an active session.

        Raises:
            NotFoundError: session not the student's, or item not in the session
            ConflictError: session no longer active, or item already answered
        """
        practice = await self._find_owned_session(student_id, session_id)
        if practice.status is not PracticeSessionStatus.ACTIVE:
            raise ConflictError("Practice session is not active")

        item = await self._get_item(practice.id, item_id)
        if item is None:
            raise NotFoundError(f"Item {item_id} not found in session {session_id}")
        if item.status is PracticeItemStatus.ANSWERED:
            raise ConflictError("Item already answered")

        now = self.clock.now()
        # Conditional write: a concurrent submission that got here first wins
        claimed = await self.session.execute(
            update(PracticeSessionItem)
            .where(
                PracticeSessionItem.id == item.id,
                PracticeSessionItem.status == PracticeItemStatus.PENDING,
            )
            .values(status=PracticeItemStatus.ANSWERED, answered_at=now)
        )
        if not claimed.rowcount:
            raise ConflictError("Item already answered")

        result = await self.answers.submit_answer(
            student_id,
            item.question_id,
            answer,
            duration=duration,
            context=SubmissionContext(session_id=practice.id, session_item_id=item.id, mode=practice.mode),
        )

        practice.answered_count += 1
        if result.outcome is AnswerOutcome.CORRECT:
            practice.correct_count += 1
        if practice.answered_count >= practice.total_count:
            practice.status = PracticeSessionStatus.COMPLETED
            practice.ended_at = now
        await self.session.flush()

        next_item = await self._next_pending_item(practice.id)
        return SessionSubmitResult(
            session=await self._to_summary(practice),
            is_completed=practice.status is PracticeSessionStatus.COMPLETED,
            next_item_id=next_item.id if next_item else None,
            result=result,
        )

    async def submit_review_item(
        self,
        student_id: str,
        item_id: UUID,
        answer: Any,
        duration: int = 0,
    ) -> SessionSubmitResult:
        """Submit a review-session item addressed by item id alone."""
        result = await self.session.execute(
            select(PracticeSessionItem.session_id)
            .join(PracticeSession, PracticeSession.id == PracticeSessionItem.session_id)
            .where(
                PracticeSessionItem.id == item_id,
                PracticeSession.student_id == student_id,
                PracticeSession.mode == PracticeMode.REVIEW,
            )
        )
        session_id = result.scalar_one_or_none()
        if session_id is None:
            raise NotFoundError(f"Review item {item_id} not found")
        return await self.submit_item(student_id, session_id, item_id, answer, duration)

    async def complete_session(self, student_id: str, session_id: UUID) -> SessionSummary:
        """Close a session; closing an already completed session is a no-op."""
        practice = await self._find_owned_session(student_id, session_id)
        if practice.status is PracticeSessionStatus.ACTIVE:
            practice.status = PracticeSessionStatus.COMPLETED
            practice.ended_at = practice.ended_at or self.clock.now()
            await self.session.flush()
            logger.info("Practice session completed: id={}", practice.id)
        return await self._to_summary(practice)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list_sessions(
        self,
        student_id: str,
        page: int = 1,
        page_size: int = 10,
        status: PracticeSessionStatus | None = None,
        mode: PracticeMode | None = None,
    ) -> Page[SessionSummary]:
        stmt = select(PracticeSession).where(PracticeSession.student_id == student_id)
        if status is not None:
            stmt = stmt.where(PracticeSession.status == status)
        if mode is not None:
            stmt = stmt.where(PracticeSession.mode == mode)
        stmt = stmt.order_by(PracticeSession.created_at.desc(), PracticeSession.id)

        result = await paginate(self.session, stmt, page, page_size)
        metrics = await self.build_metrics(result.data)
        result.data = [self._summary(practice, metrics.get(practice.id)) for practice in result.data]
        return result

    async def get_session(self, student_id: str, session_id: UUID) -> SessionDetail:
        practice = await self._find_owned_session(student_id, session_id)
        return await self._to_detail(practice)

    # -------------------------------------------------------------------------
    # Admin views
    # -------------------------------------------------------------------------

    async def list_sessions_for_admin(
        self,
        page: int = 1,
        page_size: int = 10,
        status: PracticeSessionStatus | None = None,
        mode: PracticeMode | None = None,
        student_id: str | None = None,
        keyword: str | None = None,
    ) -> Page[SessionSummary]:
        """All students' sessions, newest first; keyword matches the student id."""
        stmt = select(PracticeSession)
        if status is not None:
            stmt = stmt.where(PracticeSession.status == status)
        if mode is not None:
            stmt = stmt.where(PracticeSession.mode == mode)
        if student_id:
            stmt = stmt.where(PracticeSession.student_id == student_id)
        if keyword:
            stmt = stmt.where(PracticeSession.student_id.ilike(f"%{keyword}%"))
        stmt = stmt.order_by(PracticeSession.created_at.desc(), PracticeSession.id)

        result = await paginate(self.session, stmt, page, page_size)
        metrics = await self.build_metrics(result.data)
        result.data = [self._summary(practice, metrics.get(practice.id)) for practice in result.data]
        return result

    async def get_session_for_admin(self, session_id: UUID) -> SessionDetail:
        practice = await self.session.get(PracticeSession, session_id)
        if practice is None:
            raise NotFoundError(f"Practice session {session_id} not found")
        return await self._to_detail(practice)

    async def get_admin_stats(self) -> AdminSessionStats:
        today_start = datetime.combine(run_date_for(self.clock.now()), time.min)
        counts = (
            await self.session.execute(
                select(
                    func.count(PracticeSession.id),
                    func.count(case((PracticeSession.status == PracticeSessionStatus.ACTIVE, 1))),
                    func.count(case((PracticeSession.status == PracticeSessionStatus.COMPLETED, 1))),
                    func.count(case((PracticeSession.status == PracticeSessionStatus.ABANDONED, 1))),
                    func.count(case((PracticeSession.created_at >= today_start, 1))),
                    func.coalesce(func.sum(PracticeSession.answered_count), 0),
                    func.coalesce(func.sum(PracticeSession.correct_count), 0),
                )
            )
        ).one()
        total, active, completed, abandoned, today_created, answered, correct = counts

        by_mode = await self.session.execute(
            select(PracticeSession.mode, func.count(PracticeSession.id).label("count"))
            .group_by(PracticeSession.mode)
            .order_by(func.count(PracticeSession.id).desc(), PracticeSession.mode)
        )
        return AdminSessionStats(
            total_sessions=total,
            active_sessions=active,
            completed_sessions=completed,
            abandoned_sessions=abandoned,
            today_created_sessions=today_created,
            avg_correct_rate=_correct_rate(int(correct), int(answered)),
            by_mode=[ModeCount(mode=mode, count=count) for mode, count in by_mode.all()],
        )

    async def get_current_item(self, student_id: str, session_id: UUID) -> CurrentItem:
        """
        Lowest-seq unanswered item with its question.

        A session with nothing left to answer is completed on the spot.
        """
        practice = await self._find_owned_session(student_id, session_id)
        item = await self._next_pending_item(practice.id)

        if item is None:
            if practice.status is PracticeSessionStatus.ACTIVE:
                practice.status = PracticeSessionStatus.COMPLETED
                practice.ended_at = self.clock.now()
                await self.session.flush()
            return CurrentItem(session=await self._to_summary(practice), completed=True, item=None)

        question = await self.catalog.get(item.question_id)
        return CurrentItem(
            session=await self._to_summary(practice),
            completed=False,
            item={
                "id": item.id,
                "seq": item.seq,
                "status": item.status.value,
                "source_type": item.source_type.value,
                "source_ref_id": item.source_ref_id,
                "question": question_payload(question) if question else None,
            },
        )

    async def build_metrics(self, sessions: list[PracticeSession]) -> dict[UUID, SessionMetrics]:
        """Total duration and weak knowledge points for a batch of sessions."""
        metrics = {
            practice.id: SessionMetrics(total_duration=fallback_duration(practice.started_at, practice.ended_at))
            for practice in sessions
        }
        if not metrics:
            return metrics
        session_ids = list(metrics)

        durations = await self.session.execute(
            select(PracticeRecord.session_id, func.coalesce(func.sum(PracticeRecord.duration), 0))
            .where(PracticeRecord.session_id.in_(session_ids))
            .group_by(PracticeRecord.session_id)
        )
        for session_id, total in durations.all():
            if session_id in metrics and total and total > 0:
                metrics[session_id].total_duration = round(total)

        kp_rows = await self.session.execute(
            select(
                PracticeRecord.session_id,
                KnowledgePoint.id,
                KnowledgePoint.name,
                func.count(PracticeRecord.id),
                func.sum(case((PracticeRecord.outcome == AnswerOutcome.CORRECT, 1), else_=0)),
            )
            .select_from(PracticeRecord)
            .join(
                question_knowledge_points,
                question_knowledge_points.c.question_id == PracticeRecord.question_id,
            )
            .join(KnowledgePoint, KnowledgePoint.id == question_knowledge_points.c.knowledge_point_id)
            .where(PracticeRecord.session_id.in_(session_ids))
            .group_by(PracticeRecord.session_id, KnowledgePoint.id, KnowledgePoint.name)
        )
        grouped: dict[UUID, list[WeakKnowledgePoint]] = {}
        for session_id, kp_id, kp_name, total, correct in kp_rows.all():
            total = int(total or 0)
            if total <= 0:
                continue
            correct = int(correct or 0)
            grouped.setdefault(session_id, []).append(
                WeakKnowledgePoint(
                    id=kp_id,
                    name=kp_name,
                    total=total,
                    correct=correct,
                    correct_rate=_correct_rate(correct, total),
                )
            )
        for session_id, stats in grouped.items():
            metrics[session_id].weak_knowledge_points = rank_weak_knowledge_points(stats)

        return metrics

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _select_review_candidates(self, student_id: str, count: int) -> list[_Candidate]:
        tasks = await self.wrong_book.list_today_tasks(student_id, count)
        if tasks:
            return [_Candidate(task.question_id, ItemSourceType.REVIEW, task.wrong_book_id) for task, _ in tasks]

        entries = await self.wrong_book.list_due_entries(student_id, count)
        return [_Candidate(entry.question_id, ItemSourceType.REVIEW, entry.id) for entry in entries]

    async def _find_owned_session(self, student_id: str, session_id: UUID) -> PracticeSession:
        result = await self.session.execute(
            select(PracticeSession).where(
                PracticeSession.id == session_id,
                PracticeSession.student_id == student_id,
            )
        )
        practice = result.scalar_one_or_none()
        if practice is None:
            raise NotFoundError(f"Practice session {session_id} not found")
        return practice

    async def _get_item(self, session_id: UUID, item_id: UUID) -> PracticeSessionItem | None:
        result = await self.session.execute(
            select(PracticeSessionItem).where(
                PracticeSessionItem.id == item_id,
                PracticeSessionItem.session_id == session_id,
            )
        )
        return result.scalar_one_or_none()

    async def _next_pending_item(self, session_id: UUID) -> PracticeSessionItem | None:
        result = await self.session.execute(
            select(PracticeSessionItem)
            .where(
                PracticeSessionItem.session_id == session_id,
                PracticeSessionItem.status == PracticeItemStatus.PENDING,
            )
            .order_by(PracticeSessionItem.seq.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    def _summary(self, practice: PracticeSession, metrics: SessionMetrics | None) -> SessionSummary:
        metrics = metrics or SessionMetrics(total_duration=fallback_duration(practice.started_at, practice.ended_at))
        return SessionSummary(
            id=practice.id,
            student_id=practice.student_id,
            mode=practice.mode,
            status=practice.status,
            config=practice.config,
            total_count=practice.total_count,
            answered_count=practice.answered_count,
            correct_count=practice.correct_count,
            correct_rate=_correct_rate(practice.correct_count, practice.answered_count),
            total_duration=metrics.total_duration,
            started_at=practice.started_at,
            ended_at=practice.ended_at,
            created_at=practice.created_at,
            weak_knowledge_points=metrics.weak_knowledge_points,
        )

    async def _to_summary(self, practice: PracticeSession) -> SessionSummary:
        metrics = await self.build_metrics([practice])
        return self._summary(practice, metrics.get(practice.id))

    async def _to_detail(self, practice: PracticeSession) -> SessionDetail:
        summary = await self._to_summary(practice)
        result = await self.session.execute(
            select(PracticeSessionItem)
            .where(PracticeSessionItem.session_id == practice.id)
            .order_by(PracticeSessionItem.seq.asc())
        )
        items = list(result.scalars().all())
        next_pending = next((item for item in items if item.status is PracticeItemStatus.PENDING), None)
        return SessionDetail(
            **vars(summary),
            next_pending_seq=next_pending.seq if next_pending else None,
            items=[
                SessionItemView(
                    id=item.id,
                    question_id=item.question_id,
                    seq=item.seq,
                    source_type=item.source_type,
                    source_ref_id=item.source_ref_id,
                    status=item.status,
                    answered_at=item.answered_at,
                )
                for item in items
            ],
        )
