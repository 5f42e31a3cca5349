"""Attempt score aggregation over persisted attempt items."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol


class ScoredItem(Protocol):
    score: int | None
    needs_manual_grading: bool


@dataclass(frozen=True)
class ScoreSummary:
    """
    Aggregated attempt score.

    subjective_score is None when the attempt has no manual items or while
    any of them is ungraded, so total_score == objective_score +
    subjective_score whenever it is set.
    """

    total_score: int
    objective_score: int
    subjective_score: int | None
    needs_manual_grading: bool
    pending_manual_count: int


def summarize_scores(items: Iterable[ScoredItem]) -> ScoreSummary:
    objective = 0
    subjective = 0
    pending = 0
    manual = 0
    for item in items:
        if item.needs_manual_grading:
            manual += 1
            if item.score is None:
                pending += 1
            else:
                subjective += item.score
        else:
            objective += item.score or 0

    return ScoreSummary(
        total_score=objective + subjective,
        objective_score=objective,
        subjective_score=subjective if manual > 0 and pending == 0 else None,
        needs_manual_grading=pending > 0,
        pending_manual_count=pending,
    )
