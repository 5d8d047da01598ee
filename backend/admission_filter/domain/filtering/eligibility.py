"""
Eligibility Checker

Decides whether the subject scores submitted with a preference satisfy a
quota's admission conditions. Checks run in a fixed order so the reported
reason is stable:

1. subject combination (tổ hợp) - submitted subjects equal one listed set
2. required subjects present with a score
3. per-subject minimum scores
4. minimum total over the combination subjects (priority points excluded)

The scored subjects are the matched combination, else the required
subjects, else everything submitted.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, FrozenSet

from admission_filter.domain.filtering.conditions import Conditions
from admission_filter.domain.filtering.interfaces import DecisionReason


@dataclass(frozen=True)
class EligibilityResult:
    """Verdict plus the first failing rule."""
    eligible: bool
    reason: Optional[DecisionReason] = None
    detail: str = ""
    combination: FrozenSet[str] = frozenset()


def submitted_subjects(scores: Mapping[str, Optional[float]]) -> FrozenSet[str]:
    """Subjects that carry an actual score."""
    return frozenset(name for name, value in scores.items() if value is not None)


class EligibilityChecker:
    """Applies Conditions to one preference's subject scores."""

    def is_eligible(
        self,
        scores: Mapping[str, Optional[float]],
        conditions: Conditions,
    ) -> bool:
        return self.check(scores, conditions).eligible

    def check(
        self,
        scores: Mapping[str, Optional[float]],
        conditions: Conditions,
    ) -> EligibilityResult:
        subjects = submitted_subjects(scores)

        # Set equality, not superset: an A00 quota rejects a C00 submission
        # even when extra subjects are present.
        if conditions.subject_combinations:
            matches = [c for c in conditions.subject_combinations if c == subjects]
            if len(matches) != 1:
                return EligibilityResult(
                    eligible=False,
                    reason=DecisionReason.COMBINATION_MISMATCH,
                    detail=f"Submitted subjects {sorted(subjects)} match no accepted combination",
                )
            combination = matches[0]
        elif conditions.required_subjects:
            # Extra submitted subjects do not count toward the total
            combination = conditions.required_subjects
        else:
            combination = subjects

        missing = sorted(conditions.required_subjects - subjects)
        if missing:
            return EligibilityResult(
                eligible=False,
                reason=DecisionReason.MISSING_REQUIRED_SUBJECT,
                detail=f"Missing required subjects: {', '.join(missing)}",
            )

        for subject, minimum in sorted(conditions.min_subject_scores.items()):
            value = scores.get(subject)
            if value is None or value < minimum:
                return EligibilityResult(
                    eligible=False,
                    reason=DecisionReason.BELOW_MIN_SUBJECT_SCORE,
                    detail=f"{subject} score {value} is below minimum {minimum}",
                )

        if conditions.min_total_score is not None:
            total = sum(scores[subject] for subject in sorted(combination))
            if total < conditions.min_total_score:
                return EligibilityResult(
                    eligible=False,
                    reason=DecisionReason.BELOW_MIN_TOTAL_SCORE,
                    detail=f"Total {total:g} is below minimum {conditions.min_total_score:g}",
                )

        return EligibilityResult(eligible=True, combination=combination)
