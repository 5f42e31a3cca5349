"""Tests for answer judging and AnswerOutcome."""

import pytest

from assessment.core.enums import QuestionType
from assessment.core.judging import AnswerOutcome, judge_answer


class TestSingleChoiceAndTrueFalse:
    def test_matching_choice_is_correct(self):
        assert judge_answer(QuestionType.SINGLE_CHOICE, "B", "B") is AnswerOutcome.CORRECT

    def test_different_choice_is_incorrect(self):
        assert judge_answer(QuestionType.SINGLE_CHOICE, "B", "C") is AnswerOutcome.INCORRECT

    def test_no_type_coercion(self):
        assert judge_answer(QuestionType.SINGLE_CHOICE, "1", 1) is AnswerOutcome.INCORRECT
        assert judge_answer(QuestionType.TRUE_FALSE, True, 1) is AnswerOutcome.INCORRECT
        assert judge_answer(QuestionType.TRUE_FALSE, True, "true") is AnswerOutcome.INCORRECT

    def test_true_false(self):
        assert judge_answer(QuestionType.TRUE_FALSE, False, False) is AnswerOutcome.CORRECT
        assert judge_answer(QuestionType.TRUE_FALSE, False, True) is AnswerOutcome.INCORRECT

    def test_malformed_submission_is_incorrect(self):
        assert judge_answer(QuestionType.SINGLE_CHOICE, "A", ["A"]) is AnswerOutcome.INCORRECT
        assert judge_answer(QuestionType.SINGLE_CHOICE, "A", None) is AnswerOutcome.INCORRECT


class TestMultipleChoice:
    def test_order_does_not_matter(self):
        assert judge_answer(QuestionType.MULTIPLE_CHOICE, ["A", "C"], ["C", "A"]) is AnswerOutcome.CORRECT

    def test_subset_is_incorrect(self):
        assert judge_answer(QuestionType.MULTIPLE_CHOICE, ["A", "C"], ["A"]) is AnswerOutcome.INCORRECT

    def test_non_list_is_incorrect(self):
        assert judge_answer(QuestionType.MULTIPLE_CHOICE, ["A"], "A") is AnswerOutcome.INCORRECT

    def test_unsortable_mix_is_incorrect(self):
        assert judge_answer(QuestionType.MULTIPLE_CHOICE, ["A", "B"], ["A", 1]) is AnswerOutcome.INCORRECT


class TestFillBlank:
    def test_trim_and_case_insensitive(self):
        outcome = judge_answer(QuestionType.FILL_BLANK, ["Paris", "Rome"], ["  paris", "ROME "])
        assert outcome is AnswerOutcome.CORRECT

    def test_missing_blank_is_incorrect(self):
        assert judge_answer(QuestionType.FILL_BLANK, ["a", "b"], ["a"]) is AnswerOutcome.INCORRECT

    def test_extra_blanks_are_ignored(self):
        assert judge_answer(QuestionType.FILL_BLANK, ["a"], ["a", "extra"]) is AnswerOutcome.CORRECT

    def test_non_string_blank_is_incorrect(self):
        assert judge_answer(QuestionType.FILL_BLANK, ["1"], [1]) is AnswerOutcome.INCORRECT


def test_short_answer_waits_for_a_grader():
    assert judge_answer(QuestionType.SHORT_ANSWER, None, "anything") is AnswerOutcome.PENDING_MANUAL_REVIEW


def test_string_type_values_are_accepted():
    assert judge_answer("single_choice", "A", "A") is AnswerOutcome.CORRECT


def test_unknown_type_is_incorrect():
    assert judge_answer("essay", "A", "A") is AnswerOutcome.INCORRECT


@pytest.mark.parametrize(
    "outcome,expected",
    [
        (AnswerOutcome.CORRECT, True),
        (AnswerOutcome.INCORRECT, False),
        (AnswerOutcome.PENDING_MANUAL_REVIEW, None),
        (AnswerOutcome.UNANSWERED, None),
    ],
)
def test_outcome_is_correct(outcome, expected):
    assert outcome.is_correct is expected


def test_from_bool():
    assert AnswerOutcome.from_bool(True) is AnswerOutcome.CORRECT
    assert AnswerOutcome.from_bool(False) is AnswerOutcome.INCORRECT
