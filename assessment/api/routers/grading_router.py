"""
Manual grading router.

Endpoints for graders: task queue, claim, submit, reopen.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from assessment.api.deps import CurrentUser, get_grading_service, require_grader
from assessment.core.enums import GradingTaskStatus
from assessment.core.pagination import Page
from assessment.grading.manual_grading import GradingTaskDetail, GradingTaskSummary, ManualGradingService

router = APIRouter()


class SubmitGradeRequest(BaseModel):
    score: int = Field(..., description="Score, 0..100")
    is_passed: bool
    feedback: str | None = None
    tags: list[str] | None = None


class ReopenRequest(BaseModel):
    reason: str | None = None


@router.get("/tasks", response_model=None, summary="List grading tasks")
async def list_tasks(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    status: GradingTaskStatus | None = None,
    assignee_id: str | None = None,
    keyword: str | None = None,
    user: CurrentUser = Depends(require_grader),
    service: ManualGradingService = Depends(get_grading_service),
) -> Page[GradingTaskSummary]:
    return await service.list_tasks(page, page_size, status=status, assignee_id=assignee_id, keyword=keyword)


@router.get("/tasks/{task_id}", response_model=None, summary="Get a grading task")
async def get_task(
    task_id: UUID,
    user: CurrentUser = Depends(require_grader),
    service: ManualGradingService = Depends(get_grading_service),
) -> GradingTaskDetail:
    return await service.get_task(task_id)


@router.post("/tasks/{task_id}/claim", response_model=None, summary="Claim a grading task")
async def claim_task(
    task_id: UUID,
    user: CurrentUser = Depends(require_grader),
    service: ManualGradingService = Depends(get_grading_service),
) -> GradingTaskDetail:
    return await service.claim_task(task_id, user.id)


@router.post("/tasks/{task_id}/submit", response_model=None, summary="Submit a grade")
async def submit_task(
    task_id: UUID,
    request: SubmitGradeRequest,
    user: CurrentUser = Depends(require_grader),
    service: ManualGradingService = Depends(get_grading_service),
) -> GradingTaskDetail:
    return await service.submit_task(
        task_id,
        user.id,
        request.score,
        request.is_passed,
        feedback=request.feedback,
        tags=request.tags,
    )


@router.post("/tasks/{task_id}/reopen", response_model=None, summary="Reopen a finished task")
async def reopen_task(
    task_id: UUID,
    request: ReopenRequest,
    user: CurrentUser = Depends(require_grader),
    service: ManualGradingService = Depends(get_grading_service),
) -> GradingTaskDetail:
    return await service.reopen_task(task_id, request.reason)
