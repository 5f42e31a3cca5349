"""
Clock abstraction and UTC run-date helpers.

All timestamps inside the engine are naive UTC datetimes. Services take a
Clock so tests can pin "now" instead of patching datetime.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol

from assessment.core.errors import BadRequestError

_RUN_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock returning naive UTC datetimes."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class FixedClock:
    """Clock pinned to a given instant; advance() moves it forward."""

    current: datetime

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


def utcnow() -> datetime:
    return SystemClock().now()


def run_date_for(moment: datetime) -> date:
    """UTC calendar day of a naive-UTC or aware datetime."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.date()


def parse_run_date(value: str | None, now: datetime) -> date:
    """
    Resolve an optional YYYY-MM-DD run date.

    Falls back to today's UTC date when value is empty.

    Raises:
        BadRequestError: when value is not a valid calendar date
    """
    if value is None or not value.strip():
        return run_date_for(now)

    text = value.strip()
    if not _RUN_DATE_RE.match(text):
        raise BadRequestError(f"runDate must be YYYY-MM-DD, got {value!r}")
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise BadRequestError(f"runDate is not a valid date: {value!r}") from exc


def end_of_day(run_date: date) -> datetime:
    """Last millisecond of the UTC day (23:59:59.999)."""
    return datetime.combine(run_date, time(23, 59, 59, 999000))
