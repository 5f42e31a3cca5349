"""Read-only access to the question bank."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from assessment.core.enums import DifficultyLevel, QuestionType
from assessment.core.errors import NotFoundError
from assessment.db.models import Question, question_knowledge_points, question_tags


@dataclass
class QuestionFilters:
    """Filters for random question selection."""

    category_id: UUID | None = None
    type: QuestionType | None = None
    difficulty: DifficultyLevel | None = None
    tag_ids: list[UUID] = field(default_factory=list)
    knowledge_point_ids: list[UUID] = field(default_factory=list)


def question_payload(question: Question, include_answer: bool = False) -> dict[str, Any]:
    """Question as shown to a student; the canonical answer is withheld by default."""
    payload: dict[str, Any] = {
        "id": question.id,
        "type": question.type.value,
        "title": question.title,
        "options": question.options,
        "difficulty": question.difficulty.value if question.difficulty else None,
    }
    if include_answer:
        payload["answer"] = question.answer
        payload["explanation"] = question.explanation
    return payload


class QuestionCatalog:
    """Question lookups used by practice and exam services."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, question_id: UUID) -> Question | None:
        return await self.session.get(Question, question_id)

    async def require(self, question_id: UUID) -> Question:
        question = await self.get(question_id)
        if question is None:
            raise NotFoundError(f"Question {question_id} not found")
        return question

    async def get_many(self, question_ids: Iterable[UUID]) -> dict[UUID, Question]:
        ids = list(dict.fromkeys(question_ids))
        if not ids:
            return {}
        result = await self.session.execute(select(Question).where(Question.id.in_(ids)))
        return {question.id: question for question in result.scalars().all()}

    async def pick_random(self, filters: QuestionFilters, limit: int) -> list[Question]:
        """
        Select up to `limit` random questions matching every given filter.

        Tag and knowledge point filters match a question carrying any of the ids.
        """
        stmt = select(Question)
        if filters.category_id is not None:
            stmt = stmt.where(Question.category_id == filters.category_id)
        if filters.type is not None:
            stmt = stmt.where(Question.type == filters.type)
        if filters.difficulty is not None:
            stmt = stmt.where(Question.difficulty == filters.difficulty)
        if filters.tag_ids:
            stmt = stmt.where(
                Question.id.in_(
                    select(question_tags.c.question_id).where(question_tags.c.tag_id.in_(filters.tag_ids))
                )
            )
        if filters.knowledge_point_ids:
            stmt = stmt.where(
                Question.id.in_(
                    select(question_knowledge_points.c.question_id).where(
                        question_knowledge_points.c.knowledge_point_id.in_(filters.knowledge_point_ids)
                    )
                )
            )

        result = await self.session.execute(stmt.order_by(func.random()).limit(limit))
        return list(result.scalars().all())
