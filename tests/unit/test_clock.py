"""Tests for clock and run-date helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from assessment.core.clock import FixedClock, SystemClock, end_of_day, parse_run_date, run_date_for
from assessment.core.errors import BadRequestError

NOW = datetime(2026, 2, 21, 23, 30)


def test_parse_run_date_defaults_to_today():
    assert parse_run_date(None, NOW) == date(2026, 2, 21)
    assert parse_run_date("  ", NOW) == date(2026, 2, 21)


def test_parse_run_date_accepts_iso_date():
    assert parse_run_date("2026-03-01", NOW) == date(2026, 3, 1)


@pytest.mark.parametrize("value", ["2026/03/01", "2026-3-1", "2026-02-30", "tomorrow"])
def test_parse_run_date_rejects_bad_values(value):
    with pytest.raises(BadRequestError):
        parse_run_date(value, NOW)


def test_end_of_day():
    assert end_of_day(date(2026, 2, 21)) == datetime(2026, 2, 21, 23, 59, 59, 999000)


def test_run_date_for_aware_datetime_uses_utc():
    moment = datetime(2026, 2, 22, 1, 0, tzinfo=timezone(timedelta(hours=8)))
    assert run_date_for(moment) == date(2026, 2, 21)


def test_system_clock_is_naive():
    assert SystemClock().now().tzinfo is None


def test_fixed_clock_advance():
    clock = FixedClock(NOW)
    clock.advance(minutes=45)
    assert clock.now() == NOW + timedelta(minutes=45)
