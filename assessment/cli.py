"""
Typer CLI for the adaptive assessment service.

Commands:
    assessment db init                 - Initialize database tables
    assessment db health               - Check database connectivity
    assessment review generate         - Regenerate daily review tasks
    assessment review summary          - Show daily review task counts
    assessment exam scan-timeouts      - Auto-finish overdue exam attempts
    assessment exam timeout-summary    - Show active/overdue attempt counts

Usage:
    assessment --help
    assessment review generate --run-date 2026-02-21
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, TypeVar

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from assessment.core.errors import AssessmentError

T = TypeVar("T")

app = typer.Typer(help="Adaptive assessment CLI: practice, exams, review tasks", no_args_is_help=True)
console = Console()


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine and release pooled connections afterwards."""
    from assessment.db.database import dispose_engines

    async def runner() -> T:
        try:
            return await coro
        finally:
            await dispose_engines()

    try:
        return asyncio.run(runner())
    except AssessmentError as exc:
        rprint(f"[red]✗[/red] {exc.message}")
        raise typer.Exit(code=1)


def _schedulers():
    from assessment.db.database import get_session_factory
    from assessment.scheduling.manager import build_schedulers

    settings = get_settings()
    return build_schedulers(
        get_session_factory(),
        review_task_retry_delays_ms=settings.review_task_retry_delays_ms,
    )


# ========================================
# Database
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    from assessment.db.database import init_db

    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


@db_app.command("health")
def db_health() -> None:
    """Check database connectivity."""
    from assessment.db.database import check_database_health

    status, error = check_database_health()
    if status != "ok":
        rprint(f"[red]✗[/red] Database unreachable: {error}")
        raise typer.Exit(code=1)
    rprint("[green]✓[/green] Database OK")


# ========================================
# Review tasks
# ========================================

review_app = typer.Typer(help="Daily review tasks")
app.add_typer(review_app, name="review")


@review_app.command("generate")
def review_generate(
    run_date: str = typer.Option(None, "--run-date", "-d", help="Run date YYYY-MM-DD (default: today, UTC)"),
) -> None:
    """Replace the review tasks of a run date with the currently due wrong-book entries."""
    result = _run(_schedulers().review_tasks.manual_generate(run_date))
    rprint(
        f"[green]✓[/green] Generated {result.generated_count} review tasks for "
        f"{result.run_date.isoformat()} (attempts: {result.attempts})"
    )


@review_app.command("summary")
def review_summary(
    run_date: str = typer.Option(None, "--run-date", "-d", help="Run date YYYY-MM-DD (default: today, UTC)"),
) -> None:
    """Show total/pending/done review task counts for a run date."""
    summary = _run(_schedulers().review_tasks.get_daily_task_summary(run_date))

    table = Table(title=f"Review tasks {summary.run_date.isoformat()}")
    table.add_column("Total", justify="right")
    table.add_column("Pending", justify="right", style="yellow")
    table.add_column("Done", justify="right", style="green")
    table.add_row(str(summary.total), str(summary.pending), str(summary.done))
    console.print(table)


# ========================================
# Exams
# ========================================

exam_app = typer.Typer(help="Exam attempt maintenance")
app.add_typer(exam_app, name="exam")


@exam_app.command("scan-timeouts")
def exam_scan_timeouts() -> None:
    """Auto-finish every active attempt past its time limit."""
    result = _run(_schedulers().exam_timeout.manual_scan())

    table = Table(title="Timeout scan")
    table.add_column("Scanned", justify="right")
    table.add_column("Timed out", justify="right", style="yellow")
    table.add_column("Finished", justify="right", style="green")
    table.add_row(str(result.scanned_count), str(result.timeout_count), str(result.auto_finished_count))
    console.print(table)


@exam_app.command("timeout-summary")
def exam_timeout_summary() -> None:
    """Show how many active attempts exist and how many are overdue."""
    summary = _run(_schedulers().exam_timeout.get_timeout_summary())
    rprint(
        f"Active attempts: [bold]{summary.active_count}[/bold]  "
        f"Overdue: [yellow]{summary.timeout_count}[/yellow]  "
        f"(checked {summary.checked_at.isoformat(timespec='seconds')} UTC)"
    )


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    from assessment.logging_setup import configure_logging

    configure_logging(get_settings(), level="WARNING", file_sink=False)
    app()


if __name__ == "__main__":
    main()
