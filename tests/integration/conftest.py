"""
Integration fixtures: an in-memory SQLite database shared by one test.

StaticPool keeps the single aiosqlite connection alive so every session of
the test (including scheduler-owned sessions) sees the same database.
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from assessment.core.enums import DifficultyLevel, QuestionType
from assessment.db.database import init_db_async, make_session_factory
from assessment.db.models import KnowledgePoint, Question, question_knowledge_points

CATEGORY_ID = uuid4()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db_async(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session, now):
    """
    Five questions, one per type, in one category.

    Knowledge points: "Algebra" on single/multiple, "Geometry" on multiple/true_false.
    """
    algebra = KnowledgePoint(name="Algebra")
    geometry = KnowledgePoint(name="Geometry")
    questions = {
        "single": Question(
            type=QuestionType.SINGLE_CHOICE,
            title="2 + 2 = ?",
            options=[{"key": "A", "text": "3"}, {"key": "B", "text": "4"}],
            answer="B",
            explanation="Basic addition",
            category_id=CATEGORY_ID,
            difficulty=DifficultyLevel.EASY,
            created_at=now,
        ),
        "multiple": Question(
            type=QuestionType.MULTIPLE_CHOICE,
            title="Which are prime?",
            options=[{"key": "A", "text": "2"}, {"key": "B", "text": "4"}, {"key": "C", "text": "5"}],
            answer=["A", "C"],
            category_id=CATEGORY_ID,
            difficulty=DifficultyLevel.MEDIUM,
            created_at=now,
        ),
        "true_false": Question(
            type=QuestionType.TRUE_FALSE,
            title="A square is a rectangle",
            answer=True,
            category_id=CATEGORY_ID,
            difficulty=DifficultyLevel.EASY,
            created_at=now,
        ),
        "fill_blank": Question(
            type=QuestionType.FILL_BLANK,
            title="The capital of France is ___",
            answer=["Paris"],
            category_id=CATEGORY_ID,
            difficulty=DifficultyLevel.EASY,
            created_at=now,
        ),
        "short": Question(
            type=QuestionType.SHORT_ANSWER,
            title="Explain the Pythagorean theorem",
            answer="a^2 + b^2 = c^2 for right triangles",
            category_id=CATEGORY_ID,
            difficulty=DifficultyLevel.HARD,
            created_at=now,
        ),
    }
    session.add_all([algebra, geometry, *questions.values()])
    await session.flush()

    await session.execute(
        question_knowledge_points.insert(),
        [
            {"question_id": questions["single"].id, "knowledge_point_id": algebra.id},
            {"question_id": questions["multiple"].id, "knowledge_point_id": algebra.id},
            {"question_id": questions["multiple"].id, "knowledge_point_id": geometry.id},
            {"question_id": questions["true_false"].id, "knowledge_point_id": geometry.id},
        ],
    )
    await session.commit()

    return SimpleNamespace(
        category_id=CATEGORY_ID,
        algebra=algebra,
        geometry=geometry,
        **questions,
    )
