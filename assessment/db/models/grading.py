"""
Manual grading model.

ManualGradingTask mirrors the grading fields of its source PracticeRecord.
Lifecycle: pending -> assigned -> done, and done -> reopen -> assigned.
"""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from assessment.core.clock import utcnow
from assessment.core.enums import GradingTaskStatus

from .base import Base, JSONType, enum_column, uuid_pk


class ManualGradingTask(Base):
    """Human grading work item for a short-answer submission."""

    __tablename__ = "manual_grading_tasks"

    id: Mapped[UUID] = uuid_pk()
    practice_record_id: Mapped[UUID] = mapped_column(
        ForeignKey("practice_records.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    student_id: Mapped[str] = mapped_column(Text, nullable=False)
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[GradingTaskStatus] = enum_column(
        GradingTaskStatus, nullable=False, default=GradingTaskStatus.PENDING
    )
    assignee_id: Mapped[str | None] = mapped_column(Text)
    assigned_at: Mapped[datetime | None] = mapped_column()

    score: Mapped[int | None] = mapped_column(Integer)
    feedback: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[list | None] = mapped_column(JSONType)
    is_passed: Mapped[bool | None] = mapped_column(Boolean)
    submitted_at: Mapped[datetime | None] = mapped_column()

    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow)

    __table_args__ = (
        Index("ix_manual_grading_tasks_status", "status"),
        Index("ix_manual_grading_tasks_assignee", "assignee_id"),
    )

    def __repr__(self) -> str:
        return f"<ManualGradingTask(status={self.status.value}, assignee={self.assignee_id})>"
