"""
Review router.

Student endpoints:
- Wrong book listing, manual mastered toggle and removal
- Today's review queue and review history

Admin endpoints for the daily review task generator.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from assessment.api.deps import (
    CurrentUser,
    get_scheduler_set,
    get_wrong_book_store,
    require_admin,
    require_student,
)
from assessment.core.pagination import Page
from assessment.scheduling.manager import Schedulers
from assessment.scheduling.review_tasks import DailyTaskSummary, GenerationResult
from assessment.study.wrong_book import ReviewHistoryItem, WrongBookEntryView, WrongBookStore

router = APIRouter()


# ========================================
# Wrong book
# ========================================


@router.get("/wrong-book", response_model=None, summary="List my wrong book")
async def list_wrong_book(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    is_mastered: bool | None = None,
    user: CurrentUser = Depends(require_student),
    store: WrongBookStore = Depends(get_wrong_book_store),
) -> Page[WrongBookEntryView]:
    return await store.list_entries(user.id, page, page_size, is_mastered=is_mastered)


@router.patch("/wrong-book/{entry_id}/master", response_model=None, summary="Toggle mastered")
async def toggle_mastered(
    entry_id: UUID,
    user: CurrentUser = Depends(require_student),
    store: WrongBookStore = Depends(get_wrong_book_store),
) -> WrongBookEntryView:
    return await store.toggle_mastered(user.id, entry_id)


@router.delete("/wrong-book/{entry_id}", status_code=204, response_model=None, summary="Remove a wrong book entry")
async def remove_wrong_book_entry(
    entry_id: UUID,
    user: CurrentUser = Depends(require_student),
    store: WrongBookStore = Depends(get_wrong_book_store),
) -> None:
    await store.remove_entry(user.id, entry_id)


# ========================================
# Review queue
# ========================================


@router.get("/today", response_model=None, summary="Today's review queue")
async def get_today_review_queue(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    include_mastered: bool = False,
    user: CurrentUser = Depends(require_student),
    store: WrongBookStore = Depends(get_wrong_book_store),
) -> Page[WrongBookEntryView]:
    return await store.list_today_review_queue(user.id, page, page_size, include_mastered=include_mastered)


@router.get("/history", response_model=None, summary="My review history")
async def get_review_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    question_id: UUID | None = None,
    start: datetime | None = Query(None, alias="from"),
    end: datetime | None = Query(None, alias="to"),
    user: CurrentUser = Depends(require_student),
    store: WrongBookStore = Depends(get_wrong_book_store),
) -> Page[ReviewHistoryItem]:
    return await store.list_review_history(
        user.id, page, page_size, question_id=question_id, start=start, end=end
    )


# ========================================
# Daily task generation
# ========================================


@router.post("/daily-tasks/generate", response_model=None, summary="Regenerate daily review tasks")
async def manual_generate_daily_tasks(
    run_date: str | None = None,
    user: CurrentUser = Depends(require_admin),
    schedulers: Schedulers = Depends(get_scheduler_set),
) -> GenerationResult:
    """
    Replace the review tasks of a run date (YYYY-MM-DD, today by default).

    Returns 400 while another generation is running.
    """
    return await schedulers.review_tasks.manual_generate(run_date)


@router.get("/daily-tasks/summary", response_model=None, summary="Daily review task counts")
async def get_daily_task_summary(
    run_date: str | None = None,
    user: CurrentUser = Depends(require_admin),
    schedulers: Schedulers = Depends(get_scheduler_set),
) -> DailyTaskSummary:
    return await schedulers.review_tasks.get_daily_task_summary(run_date)
