"""
Wrong-book review models.

Implements:
- WrongBook: per (student, question) record of missed answers and its spaced-review plan
- ReviewDailyTask: snapshot of wrong-book entries due on one UTC run date

Review levels run 0..3 with intervals of 1, 3, 7 and 15 days. A correct
review at level 3 marks the entry mastered.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from assessment.core.clock import utcnow
from assessment.core.enums import ReviewTaskStatus

from .base import Base, JSONType, enum_column, uuid_pk


class WrongBook(Base):
    """A question the student has answered incorrectly at least once."""

    __tablename__ = "wrong_book"

    id: Mapped[UUID] = uuid_pk()
    student_id: Mapped[str] = mapped_column(Text, nullable=False)
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )

    wrong_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_wrong_at: Mapped[datetime] = mapped_column(nullable=False)
    last_wrong_answer: Mapped[Any | None] = mapped_column(JSONType)
    is_mastered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Spaced review plan
    review_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_review_at: Mapped[datetime | None] = mapped_column()
    last_review_result: Mapped[bool | None] = mapped_column(Boolean)
    last_reviewed_at: Mapped[datetime | None] = mapped_column()

    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    __table_args__ = (
        UniqueConstraint("student_id", "question_id", name="uq_wrong_book_student_question"),
        Index("ix_wrong_book_due", "is_mastered", "next_review_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<WrongBook(question={self.question_id}, level={self.review_level}, "
            f"mastered={self.is_mastered})>"
        )


class ReviewDailyTask(Base):
    """One due wrong-book entry on the review queue for a given run date."""

    __tablename__ = "review_daily_tasks"

    id: Mapped[UUID] = uuid_pk()
    run_date: Mapped[date] = mapped_column(Date, nullable=False)
    student_id: Mapped[str] = mapped_column(Text, nullable=False)
    wrong_book_id: Mapped[UUID] = mapped_column(
        ForeignKey("wrong_book.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[ReviewTaskStatus] = enum_column(
        ReviewTaskStatus, nullable=False, default=ReviewTaskStatus.PENDING
    )
    due_at: Mapped[datetime | None] = mapped_column()
    completed_at: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "run_date", "student_id", "wrong_book_id", name="uq_review_daily_tasks_run_student_entry"
        ),
        Index("ix_review_daily_tasks_student_run", "student_id", "run_date", "status"),
    )

    def __repr__(self) -> str:
        return f"<ReviewDailyTask(run_date={self.run_date}, status={self.status.value})>"
