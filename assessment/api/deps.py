"""
Request dependencies: caller identity and service construction.

Identity comes from the X-User-Id / X-User-Role headers set by the gateway in
front of this service. Roles: student, grader, admin.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from assessment.core.clock import Clock, SystemClock
from assessment.db.database import get_async_session
from assessment.exam.service import ExamService
from assessment.grading.manual_grading import ManualGradingService
from assessment.scheduling.manager import Schedulers, get_schedulers
from assessment.study.answers import AnswerService
from assessment.study.practice_session import PracticeSessionService
from assessment.study.wrong_book import WrongBookStore


class Role(str, Enum):
    STUDENT = "student"
    GRADER = "grader"
    ADMIN = "admin"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: Role


_clock = SystemClock()


def get_clock() -> Clock:
    return _clock


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CurrentUser:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        role = Role((x_user_role or Role.STUDENT.value).strip().lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role}")
    return CurrentUser(id=x_user_id.strip(), role=role)


def require_student(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role is not Role.STUDENT:
        raise HTTPException(status_code=403, detail="Student access required")
    return user


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role is not Role.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def require_grader(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role not in (Role.GRADER, Role.ADMIN):
        raise HTTPException(status_code=403, detail="Grader access required")
    return user


def get_answer_service(
    session: AsyncSession = Depends(get_async_session),
    clock: Clock = Depends(get_clock),
) -> AnswerService:
    return AnswerService(session, clock)


def get_practice_service(
    session: AsyncSession = Depends(get_async_session),
    clock: Clock = Depends(get_clock),
) -> PracticeSessionService:
    settings = get_settings()
    return PracticeSessionService(
        session,
        clock,
        default_question_count=settings.practice_default_question_count,
        max_question_count=settings.practice_max_question_count,
    )


def get_exam_service(
    session: AsyncSession = Depends(get_async_session),
    clock: Clock = Depends(get_clock),
) -> ExamService:
    return ExamService(session, clock)


def get_grading_service(
    session: AsyncSession = Depends(get_async_session),
    clock: Clock = Depends(get_clock),
) -> ManualGradingService:
    return ManualGradingService(session, clock)


def get_wrong_book_store(
    session: AsyncSession = Depends(get_async_session),
    clock: Clock = Depends(get_clock),
) -> WrongBookStore:
    return WrongBookStore(session, clock)


def get_scheduler_set() -> Schedulers:
    schedulers = get_schedulers()
    if schedulers is None:
        raise HTTPException(status_code=503, detail="Schedulers are not initialized")
    return schedulers
