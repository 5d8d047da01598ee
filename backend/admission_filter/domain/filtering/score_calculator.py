"""
Score Calculator

Combines the eligibility check and the formula evaluation into the
calculated score of one preference. Formula failures degrade only the
preference being scored; they never abort a run.
"""

import logging
import math
from typing import Optional

from admission_filter.domain.filtering.eligibility import EligibilityChecker
from admission_filter.domain.filtering.formula import (
    FormulaEvaluator,
    FormulaEvaluationError,
    default_formula,
)
from admission_filter.domain.filtering.interfaces import (
    Candidate,
    CompiledFormula,
    DecisionReason,
    Preference,
    Quota,
    ScoreResult,
)


logger = logging.getLogger(__name__)


class ScoreCalculator:
    """
    Calculates (score, eligible) for a candidate preference.

    The calculator does not clip priority bonuses itself: a cap applies only
    when the formula reads ``min(priorityPoints, maxBonus)`` (the default
    formula does when the quota configures ``maxBonus``).
    """

    def __init__(
        self,
        evaluator: Optional[FormulaEvaluator] = None,
        checker: Optional[EligibilityChecker] = None,
        precision: int = 2,
    ):
        self._evaluator = evaluator or FormulaEvaluator()
        self._checker = checker or EligibilityChecker()
        self._precision = precision

    def score(
        self,
        candidate: Candidate,
        preference: Preference,
        quota: Optional[Quota],
        formula: Optional[CompiledFormula] = None,
        quota_error: Optional[str] = None,
    ) -> ScoreResult:
        """
        Score one preference.

        Args:
            candidate: Candidate owning the preference
            preference: Preference being scored
            quota: Quota for the preference's QuotaKey (None if not configured)
            formula: Compiled formula for the quota (None = default formula)
            quota_error: Configuration problem that disabled the quota

        Returns:
            ScoreResult; ``score`` is None whenever ``eligible`` is False
        """
        if quota is None or quota_error:
            return ScoreResult(
                eligible=False,
                reason=DecisionReason.QUOTA_UNAVAILABLE,
                detail=quota_error or f"No quota configured for {preference.quota_key}",
            )

        conditions = quota.conditions
        verdict = self._checker.check(preference.subject_scores, conditions)
        if not verdict.eligible:
            return ScoreResult(eligible=False, reason=verdict.reason, detail=verdict.detail)

        combination_scores = {
            subject: preference.subject_scores[subject]
            for subject in sorted(verdict.combination)
        }

        if formula is not None:
            expression = formula.expression
        else:
            expression = default_formula(
                verdict.combination,
                bonus_enabled=conditions.priority_bonus.enabled,
                max_bonus=conditions.max_bonus,
            )

        try:
            value = self._evaluator.evaluate(
                expression,
                combination_scores,
                candidate.priority_points,
                max_bonus=conditions.max_bonus,
            )
        except FormulaEvaluationError as e:
            logger.warning(
                f"Formula failed for candidate {candidate.candidate_id} at {preference.quota_key}: {e}"
            )
            return ScoreResult(
                eligible=False,
                reason=DecisionReason.FORMULA_ERROR,
                detail=str(e),
            )

        if not math.isfinite(value):
            logger.warning(
                f"Formula produced a non-finite score for candidate {candidate.candidate_id} "
                f"at {preference.quota_key}"
            )
            return ScoreResult(
                eligible=False,
                reason=DecisionReason.FORMULA_ERROR,
                detail="Formula produced a non-finite score",
            )

        return ScoreResult(eligible=True, score=round(value, self._precision))
