"""
Practice models.

Implements:
- PracticeSession: one multi-question practice run (random/category/knowledge/review)
- PracticeSessionItem: ordered question slot inside a session
- PracticeRecord: durable row per answer submission, with manual grading fields

Session lifecycle:
- active: created with a fixed item set, accepts submissions
- completed: every item answered, or closed by the student
- abandoned: set by administrative tooling only
"""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from assessment.core.clock import utcnow
from assessment.core.enums import (
    AttemptType,
    ItemSourceType,
    PracticeItemStatus,
    PracticeMode,
    PracticeSessionStatus,
)
from assessment.core.judging import AnswerOutcome

from .base import Base, JSONType, enum_column, uuid_pk


class PracticeSession(Base):
    """
    A student's practice session.

    config holds the filters the session was created with:
        {
            "question_count": 10,
            "category_id": "uuid" | null,
            "knowledge_point_ids": ["uuid", ...],
            "type": "single_choice" | null,
            "difficulty": "easy" | null,
            "tag_ids": ["uuid", ...]
        }
    """

    __tablename__ = "practice_sessions"

    id: Mapped[UUID] = uuid_pk()
    student_id: Mapped[str] = mapped_column(Text, nullable=False)
    mode: Mapped[PracticeMode] = enum_column(PracticeMode, nullable=False)
    config: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    status: Mapped[PracticeSessionStatus] = enum_column(
        PracticeSessionStatus, nullable=False, default=PracticeSessionStatus.ACTIVE
    )

    total_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answered_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    started_at: Mapped[datetime] = mapped_column(nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    __table_args__ = (
        Index("ix_practice_sessions_student_created", "student_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<PracticeSession(mode={self.mode.value}, status={self.status.value}, "
            f"{self.answered_count}/{self.total_count})>"
        )

    @property
    def is_active(self) -> bool:
        return self.status is PracticeSessionStatus.ACTIVE


class PracticeSessionItem(Base):
    """One question slot in a session, answered at most once."""

    __tablename__ = "practice_session_items"

    id: Mapped[UUID] = uuid_pk()
    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("practice_sessions.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    source_type: Mapped[ItemSourceType] = enum_column(
        ItemSourceType, nullable=False, default=ItemSourceType.NORMAL
    )
    # Wrong-book entry the item was drawn from (review mode)
    source_ref_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("wrong_book.id", ondelete="SET NULL")
    )
    status: Mapped[PracticeItemStatus] = enum_column(
        PracticeItemStatus, nullable=False, default=PracticeItemStatus.PENDING
    )
    answered_at: Mapped[datetime | None] = mapped_column()

    __table_args__ = (
        UniqueConstraint("session_id", "seq", name="uq_practice_session_items_seq"),
    )

    def __repr__(self) -> str:
        return f"<PracticeSessionItem(seq={self.seq}, status={self.status.value})>"


class PracticeRecord(Base):
    """
    Durable record of one answer submission.

    Append-only apart from the grading fields, which the manual grading
    workflow writes (and clears again on reopen).
    """

    __tablename__ = "practice_records"

    id: Mapped[UUID] = uuid_pk()
    student_id: Mapped[str] = mapped_column(Text, nullable=False)
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    session_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("practice_sessions.id", ondelete="SET NULL"), index=True
    )
    session_item_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("practice_session_items.id", ondelete="SET NULL")
    )
    attempt_type: Mapped[AttemptType] = enum_column(
        AttemptType, nullable=False, default=AttemptType.PRACTICE
    )
    submitted_answer: Mapped[Any | None] = mapped_column(JSONType)
    outcome: Mapped[AnswerOutcome] = enum_column(AnswerOutcome, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Manual grading write-back
    score: Mapped[int | None] = mapped_column(Integer)
    grading_feedback: Mapped[str | None] = mapped_column(Text)
    grading_tags: Mapped[list | None] = mapped_column(JSONType)
    is_passed: Mapped[bool | None] = mapped_column(Boolean)
    graded_by: Mapped[str | None] = mapped_column(Text)
    graded_at: Mapped[datetime | None] = mapped_column()

    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    __table_args__ = (
        Index("ix_practice_records_student_question", "student_id", "question_id"),
    )

    def __repr__(self) -> str:
        return f"<PracticeRecord(type={self.attempt_type.value}, outcome={self.outcome.value})>"

    @property
    def is_correct(self) -> bool | None:
        return self.outcome.is_correct
