"""
Practice API Router.

Endpoints for students:
- Standalone answer submission
- Practice session lifecycle (create, list, get, current item, submit, complete)
- Review-item submission by item id

Endpoints for admins:
- Session list across students, session detail and aggregate stats
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from assessment.api.deps import (
    CurrentUser,
    get_answer_service,
    get_practice_service,
    require_admin,
    require_student,
)
from assessment.core.enums import DifficultyLevel, PracticeMode, PracticeSessionStatus, QuestionType
from assessment.core.pagination import Page
from assessment.study.answers import AnswerResult, AnswerService
from assessment.study.practice_session import (
    AdminSessionStats,
    CurrentItem,
    PracticeSessionService,
    SessionDetail,
    SessionSubmitResult,
    SessionSummary,
)

router = APIRouter()


# ========================================
# Request Models
# ========================================


class AnswerRequest(BaseModel):
    """Answer payload; shape depends on the question type."""

    answer: Any = Field(..., description="Submitted answer")
    duration: int = Field(0, ge=0, description="Seconds spent on the question")


class StandaloneAnswerRequest(AnswerRequest):
    question_id: UUID


class SessionCreateRequest(BaseModel):
    mode: PracticeMode
    question_count: int | None = Field(None, description="Number of questions (default 10)")
    category_id: UUID | None = None
    knowledge_point_ids: list[UUID] | None = None
    type: QuestionType | None = None
    difficulty: DifficultyLevel | None = None
    tag_ids: list[UUID] | None = None


# ========================================
# Endpoints
# ========================================


@router.post("/answers", response_model=None, summary="Submit a standalone answer")
async def submit_answer(
    request: StandaloneAnswerRequest,
    user: CurrentUser = Depends(require_student),
    service: AnswerService = Depends(get_answer_service),
) -> AnswerResult:
    return await service.submit_answer(user.id, request.question_id, request.answer, request.duration)


@router.post("/sessions", response_model=None, summary="Create a practice session")
async def create_session(
    request: SessionCreateRequest,
    user: CurrentUser = Depends(require_student),
    service: PracticeSessionService = Depends(get_practice_service),
) -> SessionDetail:
    return await service.create_session(
        user.id,
        request.mode,
        question_count=request.question_count,
        category_id=request.category_id,
        knowledge_point_ids=request.knowledge_point_ids,
        type=request.type,
        difficulty=request.difficulty,
        tag_ids=request.tag_ids,
    )


@router.get("/sessions", response_model=None, summary="List my practice sessions")
async def list_sessions(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    status: PracticeSessionStatus | None = None,
    mode: PracticeMode | None = None,
    user: CurrentUser = Depends(require_student),
    service: PracticeSessionService = Depends(get_practice_service),
) -> Page[SessionSummary]:
    return await service.list_sessions(user.id, page, page_size, status=status, mode=mode)


@router.get("/sessions/{session_id}", response_model=None, summary="Get a practice session")
async def get_session(
    session_id: UUID,
    user: CurrentUser = Depends(require_student),
    service: PracticeSessionService = Depends(get_practice_service),
) -> SessionDetail:
    return await service.get_session(user.id, session_id)


@router.get("/sessions/{session_id}/current", response_model=None, summary="Get the next unanswered item")
async def get_current_item(
    session_id: UUID,
    user: CurrentUser = Depends(require_student),
    service: PracticeSessionService = Depends(get_practice_service),
) -> CurrentItem:
    return await service.get_current_item(user.id, session_id)


@router.post("/sessions/{session_id}/items/{item_id}/submit", response_model=None, summary="Answer a session item")
async def submit_item(
    session_id: UUID,
    item_id: UUID,
    request: AnswerRequest,
    user: CurrentUser = Depends(require_student),
    service: PracticeSessionService = Depends(get_practice_service),
) -> SessionSubmitResult:
    return await service.submit_item(user.id, session_id, item_id, request.answer, request.duration)


@router.post("/sessions/{session_id}/complete", response_model=None, summary="Complete a practice session")
async def complete_session(
    session_id: UUID,
    user: CurrentUser = Depends(require_student),
    service: PracticeSessionService = Depends(get_practice_service),
) -> SessionSummary:
    return await service.complete_session(user.id, session_id)


@router.post("/review-items/{item_id}/submit", response_model=None, summary="Answer a review session item")
async def submit_review_item(
    item_id: UUID,
    request: AnswerRequest,
    user: CurrentUser = Depends(require_student),
    service: PracticeSessionService = Depends(get_practice_service),
) -> SessionSubmitResult:
    return await service.submit_review_item(user.id, item_id, request.answer, request.duration)


# ========================================
# Admin Endpoints
# ========================================


@router.get("/admin/sessions", response_model=None, summary="List all practice sessions")
async def list_sessions_for_admin(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    status: PracticeSessionStatus | None = None,
    mode: PracticeMode | None = None,
    student_id: str | None = None,
    keyword: str | None = None,
    user: CurrentUser = Depends(require_admin),
    service: PracticeSessionService = Depends(get_practice_service),
) -> Page[SessionSummary]:
    return await service.list_sessions_for_admin(
        page, page_size, status=status, mode=mode, student_id=student_id, keyword=keyword
    )


@router.get("/admin/sessions/stats", response_model=None, summary="Practice session statistics")
async def get_admin_stats(
    user: CurrentUser = Depends(require_admin),
    service: PracticeSessionService = Depends(get_practice_service),
) -> AdminSessionStats:
    return await service.get_admin_stats()


@router.get("/admin/sessions/{session_id}", response_model=None, summary="Get any practice session")
async def get_session_for_admin(
    session_id: UUID,
    user: CurrentUser = Depends(require_admin),
    service: PracticeSessionService = Depends(get_practice_service),
) -> SessionDetail:
    return await service.get_session_for_admin(session_id)
