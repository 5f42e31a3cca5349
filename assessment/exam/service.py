"""
Exam papers and timed attempts.

Paper lifecycle:   draft -> published (one way; published papers are read-only)
Attempt lifecycle: active -> completed | timeout (both terminal)

Only one active attempt per (paper, student). Starting an attempt snapshots
every paper item; short-answer items are flagged for manual grading up front.
Finishing (by the student or by the timeout scanner) goes through one finalize
step that stamps the duration and recomputes the score summary from the
persisted item rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from assessment.core.clock import Clock, SystemClock
from assessment.core.enums import AttemptType, ExamAttemptStatus, ExamPaperStatus, QuestionType
from assessment.core.errors import BadRequestError, ConflictError, NotFoundError
from assessment.core.events import AnswerSubmitted, EventDispatcher
from assessment.core.judging import AnswerOutcome, judge_answer
from assessment.core.pagination import Page, paginate
from assessment.db.models import ExamAttempt, ExamAttemptItem, ExamPaper, ExamPaperItem
from assessment.exam.scoring import ScoreSummary, summarize_scores
from assessment.study.questions import QuestionCatalog, question_payload

MAX_DURATION_MINUTES = 300
MAX_ITEM_SCORE = 100

_UNSET: Any = object()


# =============================================================================
# Inputs and results
# =============================================================================


@dataclass
class PaperItemInput:
    question_id: UUID
    score: int


@dataclass
class PaperItemView:
    id: UUID
    question_id: UUID
    seq: int
    score: int


@dataclass
class PaperSummary:
    id: UUID
    title: str
    description: str | None
    duration_minutes: int
    total_score: int
    status: ExamPaperStatus
    published_at: datetime | None
    created_by: str | None
    item_count: int
    created_at: datetime | None


@dataclass
class PaperDetail(PaperSummary):
    items: list[PaperItemView] = field(default_factory=list)


@dataclass
class AttemptSummary:
    id: UUID
    paper_id: UUID
    student_id: str
    status: ExamAttemptStatus
    started_at: datetime
    finished_at: datetime | None
    duration_seconds: int | None
    total_score: int
    objective_score: int
    subjective_score: int | None
    needs_manual_grading: bool


@dataclass
class AttemptProgress:
    attempt: AttemptSummary
    total_count: int
    answered_count: int
    completed: bool
    current_item: dict[str, Any] | None = None


@dataclass
class AttemptItemView:
    id: UUID
    question_id: UUID
    seq: int
    full_score: int
    submitted_answer: Any
    outcome: AnswerOutcome
    is_correct: bool | None
    score: int | None
    needs_manual_grading: bool
    submitted_at: datetime | None
    graded_at: datetime | None
    question: dict[str, Any] | None = None


@dataclass
class AttemptStats:
    total_count: int
    answered_count: int
    correct_count: int
    pending_manual_count: int


@dataclass
class AttemptReport:
    attempt: AttemptSummary
    paper_title: str
    stats: AttemptStats
    items: list[AttemptItemView] = field(default_factory=list)


@dataclass
class AttemptSubmitResult:
    attempt_id: UUID
    item_id: UUID
    outcome: AnswerOutcome
    is_correct: bool | None
    score: int | None
    full_score: int
    needs_manual_grading: bool
    is_completed: bool
    next_item_id: UUID | None


@dataclass
class GradeResult:
    attempt_id: UUID
    item_id: UUID
    score: int
    full_score: int
    is_correct: bool | None
    graded_at: datetime
    attempt: AttemptSummary


def timeout_at(started_at: datetime, duration_minutes: int) -> datetime:
    return started_at + timedelta(minutes=duration_minutes)


def _attempt_summary(attempt: ExamAttempt) -> AttemptSummary:
    return AttemptSummary(
        id=attempt.id,
        paper_id=attempt.paper_id,
        student_id=attempt.student_id,
        status=attempt.status,
        started_at=attempt.started_at,
        finished_at=attempt.finished_at,
        duration_seconds=attempt.duration_seconds,
        total_score=attempt.total_score,
        objective_score=attempt.objective_score,
        subjective_score=attempt.subjective_score,
        needs_manual_grading=attempt.needs_manual_grading,
    )


class ExamService:
    """Paper authoring and attempt state machine."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        catalog: QuestionCatalog | None = None,
        dispatcher: EventDispatcher | None = None,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.catalog = catalog or QuestionCatalog(session)
        if dispatcher is None:
            from assessment.study.answers import default_dispatcher

            dispatcher = default_dispatcher(session, self.clock)
        self.dispatcher = dispatcher

    # =========================================================================
    # Papers
    # =========================================================================

    async def create_paper(
        self,
        created_by: str,
        title: str,
        duration_minutes: int,
        items: Sequence[PaperItemInput],
        description: str | None = None,
    ) -> PaperDetail:
        """
        Create a draft paper.

        Raises:
            BadRequestError: empty/duplicate/unknown items, bad score or duration
        """
        title = self._check_title(title)
        self._check_duration(duration_minutes)
        await self._check_items(items)

        now = self.clock.now()
        paper = ExamPaper(
            title=title,
            description=description.strip() if description else None,
            duration_minutes=duration_minutes,
            total_score=sum(item.score for item in items),
            status=ExamPaperStatus.DRAFT,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        self.session.add(paper)
        await self.session.flush()
        self._add_paper_items(paper.id, items)
        await self.session.flush()

        logger.info("Exam paper created: id={} items={} total={}", paper.id, len(items), paper.total_score)
        return await self.get_paper(paper.id)

    async def update_paper(
        self,
        paper_id: UUID,
        title: str | None = None,
        description: str | None = _UNSET,
        duration_minutes: int | None = None,
        items: Sequence[PaperItemInput] | None = None,
    ) -> PaperDetail:
        """Edit a draft paper; items, when given, replace the whole item list."""
        paper = await self._require_paper(paper_id)
        if paper.is_published:
            raise ConflictError("Published exam paper cannot be modified")

        if items is not None:
            await self._check_items(items)
            existing = await self.session.execute(select(ExamPaperItem).where(ExamPaperItem.paper_id == paper_id))
            for old in existing.scalars().all():
                await self.session.delete(old)
            await self.session.flush()
            self._add_paper_items(paper_id, items)
            paper.total_score = sum(item.score for item in items)

        if title is not None:
            paper.title = self._check_title(title)
        if description is not _UNSET:
            paper.description = description.strip() if description else None
        if duration_minutes is not None:
            self._check_duration(duration_minutes)
            paper.duration_minutes = duration_minutes

        paper.updated_at = self.clock.now()
        await self.session.flush()
        return await self.get_paper(paper_id)

    async def publish_paper(self, paper_id: UUID) -> PaperDetail:
        """Publish a paper; publishing twice returns the current state."""
        paper = await self._require_paper(paper_id)
        item_count = await self._count_paper_items(paper_id)
        if item_count == 0:
            raise BadRequestError("Cannot publish empty exam paper")
        if paper.is_published:
            return await self.get_paper(paper_id)

        now = self.clock.now()
        paper.status = ExamPaperStatus.PUBLISHED
        paper.published_at = now
        paper.updated_at = now
        await self.session.flush()
        logger.info("Exam paper published: id={}", paper_id)
        return await self.get_paper(paper_id)

    async def list_papers(
        self,
        page: int = 1,
        page_size: int = 10,
        status: ExamPaperStatus | None = None,
        keyword: str | None = None,
    ) -> Page[PaperSummary]:
        stmt = select(ExamPaper)
        if status is not None:
            stmt = stmt.where(ExamPaper.status == status)
        if keyword and keyword.strip():
            stmt = stmt.where(ExamPaper.title.ilike(f"%{keyword.strip()}%"))
        stmt = stmt.order_by(ExamPaper.created_at.desc(), ExamPaper.id)

        result = await paginate(self.session, stmt, page, page_size)
        counts = await self._item_counts([paper.id for paper in result.data])
        result.data = [self._paper_summary(paper, counts.get(paper.id, 0)) for paper in result.data]
        return result

    async def list_published_papers(
        self,
        page: int = 1,
        page_size: int = 10,
        keyword: str | None = None,
    ) -> Page[PaperSummary]:
        return await self.list_papers(page, page_size, status=ExamPaperStatus.PUBLISHED, keyword=keyword)

    async def get_paper(self, paper_id: UUID) -> PaperDetail:
        paper = await self._require_paper(paper_id)
        items = await self._paper_items(paper_id)
        summary = self._paper_summary(paper, len(items))
        return PaperDetail(
            **vars(summary),
            items=[PaperItemView(id=i.id, question_id=i.question_id, seq=i.seq, score=i.score) for i in items],
        )

    # =========================================================================
    # Attempts
    # =========================================================================

    async def start_attempt(self, student_id: str, paper_id: UUID) -> AttemptProgress:
        """
        Start a timed attempt on a published paper.

        Raises:
            NotFoundError: paper missing or not published
            BadRequestError: paper has no items
            ConflictError: the student already has an active attempt on it
        """
        paper = await self.session.get(ExamPaper, paper_id)
        if paper is None or not paper.is_published:
            raise NotFoundError(f"Published exam paper {paper_id} not found")

        paper_items = await self._paper_items(paper_id)
        if not paper_items:
            raise BadRequestError("Exam paper has no items")

        active = await self.session.execute(
            select(ExamAttempt.id).where(
                ExamAttempt.paper_id == paper_id,
                ExamAttempt.student_id == student_id,
                ExamAttempt.status == ExamAttemptStatus.ACTIVE,
            )
        )
        if active.first() is not None:
            raise ConflictError("An active attempt already exists for this exam paper")

        questions = await self.catalog.get_many(item.question_id for item in paper_items)
        now = self.clock.now()
        attempt = ExamAttempt(
            paper_id=paper_id,
            student_id=student_id,
            status=ExamAttemptStatus.ACTIVE,
            started_at=now,
            duration_seconds=0,
            total_score=0,
            objective_score=0,
            subjective_score=None,
            needs_manual_grading=False,
            created_at=now,
        )
        self.session.add(attempt)
        await self.session.flush()

        self.session.add_all(
            [
                ExamAttemptItem(
                    attempt_id=attempt.id,
                    paper_item_id=paper_item.id,
                    question_id=paper_item.question_id,
                    seq=paper_item.seq,
                    full_score=paper_item.score,
                    outcome=AnswerOutcome.UNANSWERED,
                    needs_manual_grading=(
                        paper_item.question_id in questions
                        and questions[paper_item.question_id].type is QuestionType.SHORT_ANSWER
                    ),
                )
                for paper_item in paper_items
            ]
        )
        await self.session.flush()

        logger.info("Exam attempt started: id={} paper={} student={}", attempt.id, paper_id, student_id)
        return await self.get_attempt_progress(student_id, attempt.id)

    async def get_attempt_progress(self, student_id: str, attempt_id: UUID) -> AttemptProgress:
        attempt = await self._require_owned_attempt(student_id, attempt_id)
        items = await self._attempt_items(attempt.id)
        answered = sum(1 for item in items if item.submitted_at is not None)
        current = next((item for item in items if item.submitted_at is None), None)

        current_item = None
        if current is not None:
            question = await self.catalog.get(current.question_id)
            current_item = {
                "id": current.id,
                "seq": current.seq,
                "full_score": current.full_score,
                "question": question_payload(question) if question else None,
            }
        return AttemptProgress(
            attempt=_attempt_summary(attempt),
            total_count=len(items),
            answered_count=answered,
            completed=current is None,
            current_item=current_item,
        )

    async def submit_attempt_item(
        self,
        student_id: str,
        attempt_id: UUID,
        item_id: UUID,
        answer: Any,
    ) -> AttemptSubmitResult:
        """
        Answer one attempt item.

        Raises:
            NotFoundError: attempt not the student's, or item missing
            ConflictError: attempt not active, or item already submitted
        """
        attempt = await self._require_owned_attempt(student_id, attempt_id)
        if not attempt.is_active:
            raise ConflictError("Exam attempt is not active")

        item = await self._get_attempt_item(attempt_id, item_id)
        if item is None:
            raise NotFoundError(f"Exam attempt item {item_id} not found")
        if item.submitted_at is not None:
            raise ConflictError("Exam attempt item already submitted")

        question = await self.catalog.require(item.question_id)
        outcome = judge_answer(question.type, question.answer, answer)
        now = self.clock.now()

        needs_manual_grading = item.needs_manual_grading or outcome is AnswerOutcome.PENDING_MANUAL_REVIEW
        if outcome is AnswerOutcome.PENDING_MANUAL_REVIEW:
            score = None
        else:
            score = item.full_score if outcome is AnswerOutcome.CORRECT else 0

        # Conditional write: a concurrent submission that got here first wins
        claimed = await self.session.execute(
            update(ExamAttemptItem)
            .where(ExamAttemptItem.id == item.id, ExamAttemptItem.submitted_at.is_(None))
            .values(
                submitted_answer=answer,
                submitted_at=now,
                outcome=outcome,
                score=score,
                needs_manual_grading=needs_manual_grading,
            )
            .execution_options(synchronize_session=False)
        )
        if not claimed.rowcount:
            raise ConflictError("Exam attempt item already submitted")
        await self.session.refresh(item)

        await self.dispatcher.publish(
            AnswerSubmitted(
                student_id=student_id,
                question_id=item.question_id,
                attempt_type=AttemptType.EXAM,
                outcome=outcome,
                answer=answer,
                submitted_at=now,
                exam_attempt_id=attempt_id,
            )
        )

        next_item = await self.session.execute(
            select(ExamAttemptItem.id)
            .where(ExamAttemptItem.attempt_id == attempt_id, ExamAttemptItem.submitted_at.is_(None))
            .order_by(ExamAttemptItem.seq.asc())
            .limit(1)
        )
        next_item_id = next_item.scalar_one_or_none()
        return AttemptSubmitResult(
            attempt_id=attempt_id,
            item_id=item.id,
            outcome=outcome,
            is_correct=outcome.is_correct,
            score=item.score,
            full_score=item.full_score,
            needs_manual_grading=item.needs_manual_grading,
            is_completed=next_item_id is None,
            next_item_id=next_item_id,
        )

    async def finish_attempt(self, student_id: str, attempt_id: UUID) -> AttemptReport:
        """Finish an attempt; a terminal attempt just returns its report."""
        attempt = await self._require_owned_attempt(student_id, attempt_id)
        if attempt.is_active:
            await self.finalize_attempt(attempt, ExamAttemptStatus.COMPLETED, self.clock.now())
        return await self.get_attempt_report(attempt_id, student_id=student_id)

    async def auto_finish_timeout_attempt(self, attempt_id: UUID) -> bool:
        """
        Finalize an attempt as timed out.

        Re-checks status and deadline against the current clock, so a scan that
        raced a student's own finish leaves the attempt alone.

        Returns:
            True if the attempt was finalized by this call
        """
        row = (
            await self.session.execute(
                select(ExamAttempt, ExamPaper.duration_minutes)
                .join(ExamPaper, ExamPaper.id == ExamAttempt.paper_id)
                .where(ExamAttempt.id == attempt_id)
            )
        ).first()
        if row is None:
            return False
        attempt, duration_minutes = row
        if not attempt.is_active:
            return False

        now = self.clock.now()
        if timeout_at(attempt.started_at, duration_minutes) > now:
            return False

        await self.finalize_attempt(attempt, ExamAttemptStatus.TIMEOUT, now)
        logger.info("Exam attempt timed out: id={} student={}", attempt.id, attempt.student_id)
        return True

    async def finalize_attempt(
        self,
        attempt: ExamAttempt,
        status: ExamAttemptStatus,
        finished_at: datetime,
    ) -> ExamAttempt:
        if not status.is_terminal:
            raise ValueError(f"Cannot finalize an attempt as {status.value}")
        attempt.status = status
        attempt.finished_at = finished_at
        attempt.duration_seconds = max(0, int((finished_at - attempt.started_at).total_seconds()))
        await self.refresh_score_summary(attempt)
        return attempt

    async def refresh_score_summary(self, attempt: ExamAttempt) -> ScoreSummary:
        """Re-aggregate the attempt score from its persisted items."""
        await self.session.flush()
        summary = summarize_scores(await self._attempt_items(attempt.id))
        attempt.total_score = summary.total_score
        attempt.objective_score = summary.objective_score
        attempt.subjective_score = summary.subjective_score
        attempt.needs_manual_grading = summary.needs_manual_grading
        await self.session.flush()
        return summary

    async def get_attempt_report(self, attempt_id: UUID, student_id: str | None = None) -> AttemptReport:
        """Attempt with items, answers and stats; student_id restricts to the owner."""
        if student_id is None:
            attempt = await self.session.get(ExamAttempt, attempt_id)
            if attempt is None:
                raise NotFoundError(f"Exam attempt {attempt_id} not found")
        else:
            attempt = await self._require_owned_attempt(student_id, attempt_id)

        paper = await self.session.get(ExamPaper, attempt.paper_id)
        items = await self._attempt_items(attempt.id)
        questions = await self.catalog.get_many(item.question_id for item in items)
        summary = summarize_scores(items)

        return AttemptReport(
            attempt=_attempt_summary(attempt),
            paper_title=paper.title if paper else "",
            stats=AttemptStats(
                total_count=len(items),
                answered_count=sum(1 for item in items if item.submitted_at is not None),
                correct_count=sum(1 for item in items if item.outcome is AnswerOutcome.CORRECT),
                pending_manual_count=summary.pending_manual_count,
            ),
            items=[
                AttemptItemView(
                    id=item.id,
                    question_id=item.question_id,
                    seq=item.seq,
                    full_score=item.full_score,
                    submitted_answer=item.submitted_answer,
                    outcome=item.outcome,
                    is_correct=item.is_correct,
                    score=item.score,
                    needs_manual_grading=item.needs_manual_grading,
                    submitted_at=item.submitted_at,
                    graded_at=item.graded_at,
                    question=(
                        question_payload(questions[item.question_id], include_answer=not attempt.is_active)
                        if item.question_id in questions
                        else None
                    ),
                )
                for item in items
            ],
        )

    async def list_attempts(
        self,
        page: int = 1,
        page_size: int = 10,
        paper_id: UUID | None = None,
        student_id: str | None = None,
        status: ExamAttemptStatus | None = None,
    ) -> Page[AttemptSummary]:
        stmt = select(ExamAttempt)
        if paper_id is not None:
            stmt = stmt.where(ExamAttempt.paper_id == paper_id)
        if student_id is not None:
            stmt = stmt.where(ExamAttempt.student_id == student_id)
        if status is not None:
            stmt = stmt.where(ExamAttempt.status == status)
        stmt = stmt.order_by(ExamAttempt.started_at.desc(), ExamAttempt.id)
        return await paginate(self.session, stmt, page, page_size, transform=_attempt_summary)

    async def list_student_attempts(self, student_id: str, page: int = 1, page_size: int = 10) -> Page[AttemptSummary]:
        return await self.list_attempts(page, page_size, student_id=student_id)

    async def grade_attempt_item(
        self,
        attempt_id: UUID,
        item_id: UUID,
        score: int,
        grader_id: str | None = None,
    ) -> GradeResult:
        """
        Grade a manual item of a finished attempt.

        Raises:
            NotFoundError: attempt or item missing
            ConflictError: attempt still active, or item not submitted
            BadRequestError: item not flagged for manual grading, or score out of range
        """
        attempt = await self.session.get(ExamAttempt, attempt_id)
        if attempt is None:
            raise NotFoundError(f"Exam attempt {attempt_id} not found")
        if attempt.is_active:
            raise ConflictError("Cannot grade an active exam attempt")

        item = await self._get_attempt_item(attempt_id, item_id)
        if item is None:
            raise NotFoundError(f"Exam attempt item {item_id} not found")
        if not item.needs_manual_grading:
            raise BadRequestError("Exam attempt item does not need manual grading")
        if item.submitted_at is None:
            raise ConflictError("Cannot grade an unsubmitted exam attempt item")
        if score < 0 or score > item.full_score:
            raise BadRequestError(f"Score must be between 0 and the full score ({item.full_score})")

        now = self.clock.now()
        item.score = score
        item.outcome = AnswerOutcome.from_bool(score >= item.full_score)
        item.graded_at = now
        await self.refresh_score_summary(attempt)

        logger.info(
            "Exam item graded: attempt={} item={} score={}/{} grader={}",
            attempt_id,
            item_id,
            score,
            item.full_score,
            grader_id,
        )
        return GradeResult(
            attempt_id=attempt_id,
            item_id=item.id,
            score=score,
            full_score=item.full_score,
            is_correct=item.is_correct,
            graded_at=now,
            attempt=_attempt_summary(attempt),
        )

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _check_title(title: str) -> str:
        title = (title or "").strip()
        if not title:
            raise BadRequestError("Exam paper title is required")
        return title

    @staticmethod
    def _check_duration(duration_minutes: int) -> None:
        if duration_minutes < 1 or duration_minutes > MAX_DURATION_MINUTES:
            raise BadRequestError(f"durationMinutes must be between 1 and {MAX_DURATION_MINUTES}")

    async def _check_items(self, items: Sequence[PaperItemInput]) -> None:
        if not items:
            raise BadRequestError("Exam paper items cannot be empty")
        for item in items:
            if item.score < 1 or item.score > MAX_ITEM_SCORE:
                raise BadRequestError(f"Item score must be between 1 and {MAX_ITEM_SCORE}")

        question_ids = [item.question_id for item in items]
        unique_ids = set(question_ids)
        if len(unique_ids) != len(question_ids):
            raise BadRequestError("Duplicate question IDs found in exam paper items")

        found = await self.catalog.get_many(unique_ids)
        if len(found) != len(unique_ids):
            raise BadRequestError("Some question IDs do not exist")

    def _add_paper_items(self, paper_id: UUID, items: Sequence[PaperItemInput]) -> None:
        self.session.add_all(
            [
                ExamPaperItem(paper_id=paper_id, question_id=item.question_id, seq=index, score=item.score)
                for index, item in enumerate(items, start=1)
            ]
        )

    async def _require_paper(self, paper_id: UUID) -> ExamPaper:
        paper = await self.session.get(ExamPaper, paper_id)
        if paper is None:
            raise NotFoundError(f"Exam paper {paper_id} not found")
        return paper

    async def _paper_items(self, paper_id: UUID) -> list[ExamPaperItem]:
        result = await self.session.execute(
            select(ExamPaperItem).where(ExamPaperItem.paper_id == paper_id).order_by(ExamPaperItem.seq.asc())
        )
        return list(result.scalars().all())

    async def _count_paper_items(self, paper_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(ExamPaperItem).where(ExamPaperItem.paper_id == paper_id)
        )
        return result.scalar_one()

    async def _item_counts(self, paper_ids: list[UUID]) -> dict[UUID, int]:
        if not paper_ids:
            return {}
        result = await self.session.execute(
            select(ExamPaperItem.paper_id, func.count(ExamPaperItem.id))
            .where(ExamPaperItem.paper_id.in_(paper_ids))
            .group_by(ExamPaperItem.paper_id)
        )
        return {paper_id: count for paper_id, count in result.all()}

    @staticmethod
    def _paper_summary(paper: ExamPaper, item_count: int) -> PaperSummary:
        return PaperSummary(
            id=paper.id,
            title=paper.title,
            description=paper.description,
            duration_minutes=paper.duration_minutes,
            total_score=paper.total_score,
            status=paper.status,
            published_at=paper.published_at,
            created_by=paper.created_by,
            item_count=item_count,
            created_at=paper.created_at,
        )

    async def _require_owned_attempt(self, student_id: str, attempt_id: UUID) -> ExamAttempt:
        result = await self.session.execute(
            select(ExamAttempt).where(ExamAttempt.id == attempt_id, ExamAttempt.student_id == student_id)
        )
        attempt = result.scalar_one_or_none()
        if attempt is None:
            raise NotFoundError(f"Exam attempt {attempt_id} not found")
        return attempt

    async def _attempt_items(self, attempt_id: UUID) -> list[ExamAttemptItem]:
        result = await self.session.execute(
            select(ExamAttemptItem)
            .where(ExamAttemptItem.attempt_id == attempt_id)
            .order_by(ExamAttemptItem.seq.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _get_attempt_item(self, attempt_id: UUID, item_id: UUID) -> ExamAttemptItem | None:
        result = await self.session.execute(
            select(ExamAttemptItem).where(ExamAttemptItem.id == item_id, ExamAttemptItem.attempt_id == attempt_id)
        )
        return result.scalar_one_or_none()
