"""
Quota Conditions

Typed admission conditions for one session quota. The raw JSON stored with
each quota is parsed and validated once when the snapshot is built; the
engine never reads the raw blob.
"""

from typing import Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PriorityBonus(BaseModel):
    """Priority-point bonus policy for a quota."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    enabled: bool = True
    max_bonus: Optional[float] = Field(default=None, ge=0.0, alias="maxBonus")


class Conditions(BaseModel):
    """
    Eligibility conditions for one (major, admission method) quota.

    Accepts the camelCase keys used by the stored configuration
    (``minTotalScore``, ``subjectCombinations``...) as well as snake_case.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    min_total_score: Optional[float] = Field(default=None, ge=0.0, alias="minTotalScore")
    min_subject_scores: Dict[str, float] = Field(default_factory=dict, alias="minSubjectScores")
    required_subjects: FrozenSet[str] = Field(default_factory=frozenset, alias="requiredSubjects")
    subject_combinations: Tuple[FrozenSet[str], ...] = Field(
        default_factory=tuple, alias="subjectCombinations"
    )
    priority_bonus: PriorityBonus = Field(default_factory=PriorityBonus, alias="priorityBonus")

    @field_validator("min_subject_scores")
    @classmethod
    def validate_subject_minimums(cls, v: Dict[str, float]) -> Dict[str, float]:
        for subject, minimum in v.items():
            if not subject.strip():
                raise ValueError("Subject codes cannot be empty")
            if minimum < 0:
                raise ValueError(f"Minimum score for '{subject}' cannot be negative")
        return {subject.strip(): minimum for subject, minimum in v.items()}

    @field_validator("required_subjects")
    @classmethod
    def validate_required_subjects(cls, v: FrozenSet[str]) -> FrozenSet[str]:
        cleaned = frozenset(subject.strip() for subject in v)
        if "" in cleaned:
            raise ValueError("Subject codes cannot be empty")
        return cleaned

    @field_validator("subject_combinations")
    @classmethod
    def validate_combinations(
        cls, v: Tuple[FrozenSet[str], ...]
    ) -> Tuple[FrozenSet[str], ...]:
        combinations = []
        for combination in v:
            cleaned = frozenset(subject.strip() for subject in combination)
            if not cleaned or "" in cleaned:
                raise ValueError("Subject combinations must list non-empty subject codes")
            if cleaned not in combinations:
                combinations.append(cleaned)
        return tuple(combinations)

    @property
    def max_bonus(self) -> Optional[float]:
        """Configured bonus cap, None when uncapped or disabled."""
        if not self.priority_bonus.enabled:
            return None
        return self.priority_bonus.max_bonus
