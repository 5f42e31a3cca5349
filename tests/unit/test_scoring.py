"""Tests for attempt score aggregation."""

from types import SimpleNamespace

from assessment.exam.scoring import summarize_scores


def item(score, manual=False):
    return SimpleNamespace(score=score, needs_manual_grading=manual)


def test_objective_only():
    summary = summarize_scores([item(5), item(0), item(None)])

    assert summary.objective_score == 5
    assert summary.total_score == 5
    assert summary.subjective_score is None
    assert summary.needs_manual_grading is False
    assert summary.pending_manual_count == 0


def test_pending_manual_item_hides_subjective_score():
    summary = summarize_scores([item(10), item(None, manual=True), item(4, manual=True)])

    assert summary.objective_score == 10
    assert summary.subjective_score is None
    assert summary.total_score == 14
    assert summary.needs_manual_grading is True
    assert summary.pending_manual_count == 1


def test_all_manual_items_graded():
    summary = summarize_scores([item(10), item(3, manual=True), item(4, manual=True)])

    assert summary.subjective_score == 7
    assert summary.total_score == summary.objective_score + summary.subjective_score == 17
    assert summary.needs_manual_grading is False


def test_empty_attempt():
    summary = summarize_scores([])

    assert summary.total_score == 0
    assert summary.subjective_score is None
    assert summary.needs_manual_grading is False
