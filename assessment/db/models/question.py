"""
Question bank tables.

These are owned by the question/category/tag administration service; the
assessment engine only reads them.

Implements:
- Question: stem, type, options and canonical answer
- KnowledgePoint: named skill a question exercises
- question_knowledge_points / question_tags: association tables
"""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Column, ForeignKey, Table, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from assessment.core.clock import utcnow
from assessment.core.enums import DifficultyLevel, QuestionType

from .base import Base, JSONType, enum_column, uuid_pk

question_knowledge_points = Table(
    "question_knowledge_points",
    Base.metadata,
    Column("question_id", Uuid(as_uuid=True), ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "knowledge_point_id",
        Uuid(as_uuid=True),
        ForeignKey("knowledge_points.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

question_tags = Table(
    "question_tags",
    Base.metadata,
    Column("question_id", Uuid(as_uuid=True), ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid(as_uuid=True), primary_key=True),
)


class Question(Base):
    """
    A question as stored by the question bank.

    answer shape by type:
        single_choice:   "B"
        multiple_choice: ["A", "C"]
        true_false:      true
        fill_blank:      ["first blank", "second blank"]
        short_answer:    reference text (never auto-graded)
    """

    __tablename__ = "questions"

    id: Mapped[UUID] = uuid_pk()
    type: Mapped[QuestionType] = enum_column(QuestionType, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[Any | None] = mapped_column(JSONType)
    answer: Mapped[Any] = mapped_column(JSONType, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text)
    category_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), index=True)
    difficulty: Mapped[DifficultyLevel | None] = enum_column(DifficultyLevel)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, type={self.type.value})>"


class KnowledgePoint(Base):
    """Named knowledge point (skill) used for weak-spot reporting."""

    __tablename__ = "knowledge_points"

    id: Mapped[UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<KnowledgePoint(name={self.name})>"
