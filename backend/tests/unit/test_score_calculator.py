"""
Unit tests for the score calculator.
"""

import logging

import pytest

from admission_filter.domain.filtering import (
    CompiledFormula,
    DecisionReason,
    ScoreCalculator,
)
from admission_filter.domain.filtering.formula import BinaryOp, Number, Variable, parse_formula


@pytest.fixture
def calculator():
    """Score calculator with default precision."""
    return ScoreCalculator()


def compiled(source: str, formula_id: str = "f1") -> CompiledFormula:
    return CompiledFormula(formula_id=formula_id, name=formula_id, source=source, expression=parse_formula(source))


A00_SCORES = {"math": 9.0, "physics": 8.5, "chemistry": 8.0}


class TestScoreCalculator:
    """Tests for ScoreCalculator.score."""

    def test_block_sum_scores_25_5(self, calculator, make_candidate, make_quota, a00_conditions):
        """CNTT/A00 candidate with 9.0/8.5/8.0 scores 25.5 and competes."""
        candidate = make_candidate("c1", [("CNTT", "A00", A00_SCORES)])
        quota = make_quota("CNTT", "A00", capacity=40, conditions=a00_conditions)

        result = calculator.score(candidate, candidate.preferences[0], quota)

        assert result.eligible
        assert result.score == 25.5
        assert result.reason is None

    def test_wrong_combination_has_no_score(self, calculator, make_candidate, make_quota, a00_conditions):
        """C00 submission against an A00 quota is ineligible with a null score."""
        c00 = {"literature": 10.0, "history": 10.0, "geography": 10.0}
        candidate = make_candidate("c1", [("CNTT", "A00", c00)])
        quota = make_quota("CNTT", "A00", conditions=a00_conditions)

        result = calculator.score(candidate, candidate.preferences[0], quota)

        assert not result.eligible
        assert result.score is None
        assert result.reason == DecisionReason.COMBINATION_MISMATCH

    def test_default_formula_caps_bonus(self, calculator, make_candidate, make_quota, a00_conditions):
        candidate = make_candidate("c1", [("CNTT", "A00", A00_SCORES)], priority_points=3.0)
        quota = make_quota("CNTT", "A00", conditions=a00_conditions)

        result = calculator.score(candidate, candidate.preferences[0], quota)

        assert result.score == 27.5

    def test_uncapped_formula_is_not_clipped(self, calculator, make_candidate, make_quota, a00_conditions):
        candidate = make_candidate("c1", [("CNTT", "A00", A00_SCORES)], priority_points=3.0)
        quota = make_quota("CNTT", "A00", conditions=a00_conditions, formula_id="f1")
        formula = compiled("math + physics + chemistry + priorityPoints")

        result = calculator.score(candidate, candidate.preferences[0], quota, formula)

        assert result.score == 28.5

    def test_weighted_formula(self, calculator, make_candidate, make_quota):
        scores = {"math": 8.0, "literature": 7.0, "english": 9.0}
        candidate = make_candidate("c1", [("KT", "D01", scores)])
        quota = make_quota("KT", "D01", conditions={"subjectCombinations": [list(scores)]}, formula_id="f1")

        result = calculator.score(candidate, candidate.preferences[0], quota, compiled("math * 2 + literature + english"))

        assert result.score == 32.0

    def test_score_rounded_to_precision(self, make_candidate, make_quota):
        candidate = make_candidate("c1", [("CNTT", "A00", A00_SCORES)])
        quota = make_quota("CNTT", "A00", formula_id="f1")
        formula = compiled("(math + physics + chemistry) / 3")

        assert ScoreCalculator(precision=2).score(candidate, candidate.preferences[0], quota, formula).score == 8.5
        result = ScoreCalculator(precision=1).score(candidate, candidate.preferences[0], quota, compiled("10 / 3"))
        assert result.score == 3.3

    def test_formula_error_degrades_preference(self, calculator, make_candidate, make_quota, caplog):
        candidate = make_candidate("c1", [("CNTT", "A00", A00_SCORES)])
        quota = make_quota("CNTT", "A00", formula_id="f1")
        formula = compiled("math + biology")

        with caplog.at_level(logging.WARNING):
            result = calculator.score(candidate, candidate.preferences[0], quota, formula)

        assert not result.eligible
        assert result.score is None
        assert result.reason == DecisionReason.FORMULA_ERROR
        assert "biology" in result.detail
        assert "Formula failed" in caplog.text

    def test_division_by_zero_degrades_preference(self, calculator, make_candidate, make_quota):
        candidate = make_candidate("c1", [("CNTT", "A00", A00_SCORES)])
        quota = make_quota("CNTT", "A00", formula_id="f1")

        result = calculator.score(candidate, candidate.preferences[0], quota, compiled("math / 0"))

        assert result.reason == DecisionReason.FORMULA_ERROR

    def test_missing_quota(self, calculator, make_candidate):
        candidate = make_candidate("c1", [("CNTT", "A00", A00_SCORES)])

        result = calculator.score(candidate, candidate.preferences[0], None)

        assert not result.eligible
        assert result.reason == DecisionReason.QUOTA_UNAVAILABLE

    def test_quota_error(self, calculator, make_candidate, make_quota):
        candidate = make_candidate("c1", [("CNTT", "A00", A00_SCORES)])
        quota = make_quota("CNTT", "A00")

        result = calculator.score(candidate, candidate.preferences[0], quota, quota_error="broken formula")

        assert result.reason == DecisionReason.QUOTA_UNAVAILABLE
        assert result.detail == "broken formula"

    def test_without_conditions_all_submitted_subjects_count(self, calculator, make_candidate, make_quota):
        scores = {**A00_SCORES, "english": 9.0}
        candidate = make_candidate("c1", [("CNTT", "A00", scores)], priority_points=1.0)
        quota = make_quota("CNTT", "A00")

        result = calculator.score(candidate, candidate.preferences[0], quota)

        assert result.score == 35.5

    def test_required_subjects_exclude_extra_submissions(self, calculator, make_candidate, make_quota):
        """Only the required subjects are summed when no combination is listed."""
        scores = {**A00_SCORES, "english": 10.0}
        candidate = make_candidate("c1", [("CNTT", "A00", scores)])
        quota = make_quota("CNTT", "A00", conditions={"requiredSubjects": ["math", "physics", "chemistry"]})

        result = calculator.score(candidate, candidate.preferences[0], quota)

        assert result.eligible
        assert result.score == 25.5

    def test_required_subjects_limit_formula_context(self, calculator, make_candidate, make_quota):
        scores = {**A00_SCORES, "english": 10.0}
        candidate = make_candidate("c1", [("CNTT", "A00", scores)])
        quota = make_quota(
            "CNTT", "A00", formula_id="f1",
            conditions={"requiredSubjects": ["math", "physics", "chemistry"]},
        )

        result = calculator.score(candidate, candidate.preferences[0], quota, compiled("math + english"))

        assert result.reason == DecisionReason.FORMULA_ERROR
        assert "english" in result.detail

    def test_overly_deep_tree_degrades_preference(self, calculator, make_candidate, make_quota):
        """A hand-built tree deeper than the interpreter stack fails only its preference."""
        expression = Variable("math")
        for _ in range(5000):
            expression = BinaryOp("+", expression, Number(0.0))
        formula = CompiledFormula(formula_id="f1", name="deep", source="", expression=expression)
        candidate = make_candidate("c1", [("CNTT", "A00", A00_SCORES)])
        quota = make_quota("CNTT", "A00", formula_id="f1")

        result = calculator.score(candidate, candidate.preferences[0], quota, formula)

        assert not result.eligible
        assert result.reason == DecisionReason.FORMULA_ERROR
