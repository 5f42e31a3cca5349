"""
Spaced-repetition plan for wrong-book entries.

Four review levels with fixed intervals:

Level | Interval
------|---------
  0   |  1 day
  1   |  3 days
  2   |  7 days
  3   | 15 days

A wrong answer resets the entry to level 0. A review moves the level up one
step when correct and down one step when incorrect. Reaching level 3 through
a correct review marks the entry mastered.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from numbers import Real
from typing import Any

REVIEW_INTERVAL_DAYS: dict[int, int] = {0: 1, 1: 3, 2: 7, 3: 15}
MIN_REVIEW_LEVEL = 0
MAX_REVIEW_LEVEL = 3


@dataclass(frozen=True)
class ReviewPlan:
    """Outcome of a planning step."""

    level: int
    next_review_at: datetime


def normalize_level(level: Any) -> int:
    """
    Coerce a stored level into [0, 3].

    Non-numeric, non-finite and negative values become 0; values above the
    maximum become 3; fractional values are floored.
    """
    if isinstance(level, bool) or not isinstance(level, Real):
        return MIN_REVIEW_LEVEL
    value = float(level)
    if not math.isfinite(value) or value < MIN_REVIEW_LEVEL:
        return MIN_REVIEW_LEVEL
    if value > MAX_REVIEW_LEVEL:
        return MAX_REVIEW_LEVEL
    return int(math.floor(value))


def interval_days(level: Any) -> int:
    return REVIEW_INTERVAL_DAYS[normalize_level(level)]


def plan_after_wrong_answer(now: datetime) -> ReviewPlan:
    """Reset to level 0; review again tomorrow."""
    return ReviewPlan(level=MIN_REVIEW_LEVEL, next_review_at=now + timedelta(days=interval_days(0)))


def plan_after_review(current_level: Any, is_correct: bool, now: datetime) -> ReviewPlan:
    """
    Advance or step back one level after a review answer.

    Args:
        current_level: Level stored on the wrong-book entry
        is_correct: Whether the review answer was correct
        now: Review time

    Returns:
        ReviewPlan with the new level and its due time
    """
    level = normalize_level(current_level)
    if is_correct:
        new_level = min(level + 1, MAX_REVIEW_LEVEL)
    else:
        new_level = max(level - 1, MIN_REVIEW_LEVEL)
    return ReviewPlan(level=new_level, next_review_at=now + timedelta(days=interval_days(new_level)))


def should_auto_master(level: Any) -> bool:
    return normalize_level(level) >= MAX_REVIEW_LEVEL
