"""
FastAPI application for the adaptive assessment service.

Provides REST API for:
- Practice: standalone answers and practice sessions
- Exams: paper authoring, timed attempts, grading, timeout scans
- Review: daily review task generation
- Grading: manual grading task queue
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from config import get_settings
from assessment import __version__
from assessment.core.errors import AssessmentError
from assessment.db.database import (
    check_database_health,
    dispose_engines,
    get_session_factory,
    init_db_async,
)
from assessment.logging_setup import configure_logging
from assessment.scheduling.manager import (
    build_schedulers,
    get_schedulers,
    set_schedulers,
    start_schedulers,
    stop_schedulers,
)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    configure_logging(settings)
    logger.info("Starting adaptive assessment service...")
    await init_db_async()

    schedulers = build_schedulers(
        get_session_factory(),
        exam_timeout_interval_seconds=settings.exam_timeout_scan_interval_seconds,
        review_task_interval_seconds=settings.review_task_interval_seconds,
        review_task_retry_delays_ms=settings.review_task_retry_delays_ms,
    )
    if settings.scheduler_enabled:
        start_schedulers(schedulers)
    else:
        # Manual triggers still work with the loops off
        set_schedulers(schedulers)
        logger.info("Background schedulers disabled")
    logger.info("Service started on {}:{}", settings.api_host, settings.api_port)

    yield

    # Shutdown
    logger.info("Shutting down adaptive assessment service...")
    await stop_schedulers()
    await dispose_engines()


app = FastAPI(
    title="Adaptive Assessment",
    description="""
    Adaptive practice and exam engine.

    ## Features

    - **Practice**: Auto-judged answers, practice sessions with review-first selection
    - **Wrong Book**: Spaced repetition (1/3/7/15 days) with daily review tasks
    - **Exams**: Timed attempts, auto-finish on timeout, manual grading of short answers
    - **Manual Grading**: Claim/submit/reopen queue for short-answer practice
    """,
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AssessmentError)
async def assessment_error_handler(request: Request, exc: AssessmentError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "adaptive-assessment",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with database connectivity and scheduler state."""
    db_status, db_error = check_database_health()
    overall_status = "healthy" if db_status == "ok" else "unhealthy"

    schedulers = get_schedulers()
    components: dict[str, Any] = {"database": db_status}
    if schedulers is not None:
        for name, job in (("exam_timeout", schedulers.exam_timeout), ("review_tasks", schedulers.review_tasks)):
            components[name] = {
                "running": job.status.is_running,
                "last_run_at": job.status.last_run_at.isoformat() if job.status.last_run_at else None,
                "last_success": job.status.last_success,
                "total_runs": job.status.total_runs,
            }

    result: dict[str, Any] = {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": components,
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


# ========================================
# Import and mount routers
# ========================================

from assessment.api.routers import (  # noqa: E402
    exam_router,
    grading_router,
    practice_router,
    review_router,
)

app.include_router(practice_router.router, prefix="/api/practice", tags=["Practice"])
app.include_router(exam_router.router, prefix="/api/exam", tags=["Exam"])
app.include_router(review_router.router, prefix="/api/review", tags=["Review"])
app.include_router(grading_router.router, prefix="/api/grading", tags=["Grading"])
