"""
Exam models.

Implements:
- ExamPaper: authored paper (draft -> published, one way)
- ExamPaperItem: ordered question reference with a per-item score
- ExamAttempt: one student's timed run of a paper (active -> completed | timeout)
- ExamAttemptItem: snapshot of a paper item taken when the attempt starts

Score summary on an attempt is always recomputed from its item rows:
    total_score      = objective_score + sum(graded manual scores)
    subjective_score = sum(manual scores), or NULL while any manual item is ungraded
"""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from assessment.core.clock import utcnow
from assessment.core.enums import ExamAttemptStatus, ExamPaperStatus
from assessment.core.judging import AnswerOutcome

from .base import Base, JSONType, enum_column, uuid_pk


class ExamPaper(Base):
    """Exam paper definition."""

    __tablename__ = "exam_papers"

    id: Mapped[UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[ExamPaperStatus] = enum_column(
        ExamPaperStatus, nullable=False, default=ExamPaperStatus.DRAFT
    )
    published_at: Mapped[datetime | None] = mapped_column()
    created_by: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow)

    def __repr__(self) -> str:
        return f"<ExamPaper(title={self.title!r}, status={self.status.value})>"

    @property
    def is_published(self) -> bool:
        return self.status is ExamPaperStatus.PUBLISHED


class ExamPaperItem(Base):
    """Question slot on a paper."""

    __tablename__ = "exam_paper_items"

    id: Mapped[UUID] = uuid_pk()
    paper_id: Mapped[UUID] = mapped_column(
        ForeignKey("exam_papers.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="RESTRICT"), nullable=False
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("paper_id", "seq", name="uq_exam_paper_items_seq"),
        UniqueConstraint("paper_id", "question_id", name="uq_exam_paper_items_question"),
    )

    def __repr__(self) -> str:
        return f"<ExamPaperItem(seq={self.seq}, score={self.score})>"


class ExamAttempt(Base):
    """A student's attempt at a published paper."""

    __tablename__ = "exam_attempts"

    id: Mapped[UUID] = uuid_pk()
    paper_id: Mapped[UUID] = mapped_column(
        ForeignKey("exam_papers.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ExamAttemptStatus] = enum_column(
        ExamAttemptStatus, nullable=False, default=ExamAttemptStatus.ACTIVE
    )
    started_at: Mapped[datetime] = mapped_column(nullable=False)
    finished_at: Mapped[datetime | None] = mapped_column()
    duration_seconds: Mapped[int | None] = mapped_column(Integer)

    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    objective_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subjective_score: Mapped[int | None] = mapped_column(Integer)
    needs_manual_grading: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    __table_args__ = (
        Index("ix_exam_attempts_paper_student_status", "paper_id", "student_id", "status"),
        Index("ix_exam_attempts_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<ExamAttempt(status={self.status.value}, total={self.total_score})>"

    @property
    def is_active(self) -> bool:
        return self.status is ExamAttemptStatus.ACTIVE


class ExamAttemptItem(Base):
    """Per-attempt copy of a paper item, plus the student's answer and grade."""

    __tablename__ = "exam_attempt_items"

    id: Mapped[UUID] = uuid_pk()
    attempt_id: Mapped[UUID] = mapped_column(
        ForeignKey("exam_attempts.id", ondelete="CASCADE"), nullable=False
    )
    paper_item_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("exam_paper_items.id", ondelete="SET NULL")
    )
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="RESTRICT"), nullable=False
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    full_score: Mapped[int] = mapped_column(Integer, nullable=False)

    submitted_answer: Mapped[Any | None] = mapped_column(JSONType)
    outcome: Mapped[AnswerOutcome] = enum_column(
        AnswerOutcome, nullable=False, default=AnswerOutcome.UNANSWERED
    )
    score: Mapped[int | None] = mapped_column(Integer)
    needs_manual_grading: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    submitted_at: Mapped[datetime | None] = mapped_column()
    graded_at: Mapped[datetime | None] = mapped_column()

    __table_args__ = (
        UniqueConstraint("attempt_id", "seq", name="uq_exam_attempt_items_seq"),
    )

    def __repr__(self) -> str:
        return f"<ExamAttemptItem(seq={self.seq}, outcome={self.outcome.value}, score={self.score})>"

    @property
    def is_correct(self) -> bool | None:
        return self.outcome.is_correct
