"""
Exam API Router.

Admin endpoints:
- Paper authoring (create, update, publish, list, get)
- Attempt listing, reports and manual item grading
- Timeout scan trigger and summary

Student endpoints:
- Published papers, attempt start/progress/submit/finish/report
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from assessment.api.deps import (
    CurrentUser,
    get_exam_service,
    get_scheduler_set,
    require_admin,
    require_student,
)
from assessment.core.enums import ExamAttemptStatus, ExamPaperStatus
from assessment.core.pagination import Page
from assessment.exam.service import (
    AttemptProgress,
    AttemptReport,
    AttemptSubmitResult,
    AttemptSummary,
    ExamService,
    GradeResult,
    PaperDetail,
    PaperItemInput,
    PaperSummary,
)
from assessment.scheduling.exam_timeout import TimeoutScanResult, TimeoutSummary
from assessment.scheduling.manager import Schedulers

router = APIRouter()


# ========================================
# Request Models
# ========================================


class PaperItemRequest(BaseModel):
    question_id: UUID
    score: int = Field(..., description="Item score, 1..100")


class PaperCreateRequest(BaseModel):
    title: str
    description: str | None = None
    duration_minutes: int = Field(..., description="Time limit, 1..300 minutes")
    items: list[PaperItemRequest]


class PaperUpdateRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    duration_minutes: int | None = None
    items: list[PaperItemRequest] | None = None


class AttemptAnswerRequest(BaseModel):
    answer: Any = Field(..., description="Submitted answer")


class GradeItemRequest(BaseModel):
    score: int = Field(..., description="Awarded score, 0..full score")


def _items(items: list[PaperItemRequest]) -> list[PaperItemInput]:
    return [PaperItemInput(question_id=item.question_id, score=item.score) for item in items]


# ========================================
# Admin: papers
# ========================================


@router.post("/papers", response_model=None, summary="Create an exam paper")
async def create_paper(
    request: PaperCreateRequest,
    user: CurrentUser = Depends(require_admin),
    service: ExamService = Depends(get_exam_service),
) -> PaperDetail:
    return await service.create_paper(
        user.id,
        request.title,
        request.duration_minutes,
        _items(request.items),
        description=request.description,
    )


@router.put("/papers/{paper_id}", response_model=None, summary="Update a draft exam paper")
async def update_paper(
    paper_id: UUID,
    request: PaperUpdateRequest,
    user: CurrentUser = Depends(require_admin),
    service: ExamService = Depends(get_exam_service),
) -> PaperDetail:
    changes: dict[str, Any] = {
        "title": request.title,
        "duration_minutes": request.duration_minutes,
        "items": _items(request.items) if request.items is not None else None,
    }
    if "description" in request.model_fields_set:
        changes["description"] = request.description
    return await service.update_paper(paper_id, **changes)


@router.post("/papers/{paper_id}/publish", response_model=None, summary="Publish an exam paper")
async def publish_paper(
    paper_id: UUID,
    user: CurrentUser = Depends(require_admin),
    service: ExamService = Depends(get_exam_service),
) -> PaperDetail:
    return await service.publish_paper(paper_id)


@router.get("/papers", response_model=None, summary="List exam papers")
async def list_papers(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    status: ExamPaperStatus | None = None,
    keyword: str | None = None,
    user: CurrentUser = Depends(require_admin),
    service: ExamService = Depends(get_exam_service),
) -> Page[PaperSummary]:
    return await service.list_papers(page, page_size, status=status, keyword=keyword)


@router.get("/papers/{paper_id}", response_model=None, summary="Get an exam paper")
async def get_paper(
    paper_id: UUID,
    user: CurrentUser = Depends(require_admin),
    service: ExamService = Depends(get_exam_service),
) -> PaperDetail:
    return await service.get_paper(paper_id)


# ========================================
# Admin: attempts and grading
# ========================================


@router.get("/attempts", response_model=None, summary="List exam attempts")
async def list_attempts(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    paper_id: UUID | None = None,
    student_id: str | None = None,
    status: ExamAttemptStatus | None = None,
    user: CurrentUser = Depends(require_admin),
    service: ExamService = Depends(get_exam_service),
) -> Page[AttemptSummary]:
    return await service.list_attempts(page, page_size, paper_id=paper_id, student_id=student_id, status=status)


@router.get("/attempts/{attempt_id}", response_model=None, summary="Get an attempt report")
async def get_attempt(
    attempt_id: UUID,
    user: CurrentUser = Depends(require_admin),
    service: ExamService = Depends(get_exam_service),
) -> AttemptReport:
    return await service.get_attempt_report(attempt_id)


@router.post(
    "/attempts/{attempt_id}/items/{item_id}/grade",
    response_model=None,
    summary="Grade a manual attempt item",
)
async def grade_attempt_item(
    attempt_id: UUID,
    item_id: UUID,
    request: GradeItemRequest,
    user: CurrentUser = Depends(require_admin),
    service: ExamService = Depends(get_exam_service),
) -> GradeResult:
    return await service.grade_attempt_item(attempt_id, item_id, request.score, grader_id=user.id)


@router.post("/timeout-scan", response_model=None, summary="Run a timeout scan now")
async def manual_timeout_scan(
    user: CurrentUser = Depends(require_admin),
    schedulers: Schedulers = Depends(get_scheduler_set),
) -> TimeoutScanResult:
    return await schedulers.exam_timeout.manual_scan()


@router.get("/timeout-summary", response_model=None, summary="Active and overdue attempt counts")
async def get_timeout_summary(
    user: CurrentUser = Depends(require_admin),
    schedulers: Schedulers = Depends(get_scheduler_set),
) -> TimeoutSummary:
    return await schedulers.exam_timeout.get_timeout_summary()


# ========================================
# Student
# ========================================


@router.get("/published-papers", response_model=None, summary="List published exam papers")
async def list_published_papers(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    keyword: str | None = None,
    user: CurrentUser = Depends(require_student),
    service: ExamService = Depends(get_exam_service),
) -> Page[PaperSummary]:
    return await service.list_published_papers(page, page_size, keyword=keyword)


@router.post("/published-papers/{paper_id}/attempts", response_model=None, summary="Start an attempt")
async def start_attempt(
    paper_id: UUID,
    user: CurrentUser = Depends(require_student),
    service: ExamService = Depends(get_exam_service),
) -> AttemptProgress:
    return await service.start_attempt(user.id, paper_id)


@router.get("/my-attempts", response_model=None, summary="List my attempts")
async def list_my_attempts(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    user: CurrentUser = Depends(require_student),
    service: ExamService = Depends(get_exam_service),
) -> Page[AttemptSummary]:
    return await service.list_student_attempts(user.id, page, page_size)


@router.get("/my-attempts/{attempt_id}/progress", response_model=None, summary="Attempt progress")
async def get_attempt_progress(
    attempt_id: UUID,
    user: CurrentUser = Depends(require_student),
    service: ExamService = Depends(get_exam_service),
) -> AttemptProgress:
    return await service.get_attempt_progress(user.id, attempt_id)


@router.post(
    "/my-attempts/{attempt_id}/items/{item_id}/submit",
    response_model=None,
    summary="Answer an attempt item",
)
async def submit_attempt_item(
    attempt_id: UUID,
    item_id: UUID,
    request: AttemptAnswerRequest,
    user: CurrentUser = Depends(require_student),
    service: ExamService = Depends(get_exam_service),
) -> AttemptSubmitResult:
    return await service.submit_attempt_item(user.id, attempt_id, item_id, request.answer)


@router.post("/my-attempts/{attempt_id}/finish", response_model=None, summary="Finish an attempt")
async def finish_attempt(
    attempt_id: UUID,
    user: CurrentUser = Depends(require_student),
    service: ExamService = Depends(get_exam_service),
) -> AttemptReport:
    return await service.finish_attempt(user.id, attempt_id)


@router.get("/my-attempts/{attempt_id}/report", response_model=None, summary="Attempt report")
async def get_my_attempt_report(
    attempt_id: UUID,
    user: CurrentUser = Depends(require_student),
    service: ExamService = Depends(get_exam_service),
) -> AttemptReport:
    return await service.get_attempt_report(attempt_id, student_id=user.id)
