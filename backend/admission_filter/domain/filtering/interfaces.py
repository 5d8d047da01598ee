"""
Filtering Interfaces for the Admission Filter service

Data model shared by the virtual filter engine: the frozen snapshot it reads
and the assignment records it produces.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Optional, Dict, Any, Mapping, Tuple

from admission_filter.domain.filtering.conditions import Conditions
from admission_filter.domain.filtering.formula import Expression


class AssignmentStatus(Enum):
    """Final engine status of one application."""
    ADMITTED = "admitted"
    REJECTED = "rejected"
    PENDING_INELIGIBLE = "pending-ineligible"

    @property
    def stored_value(self) -> str:
        """Value written to ``applications.admission_status``."""
        return _STORED_STATUS[self]


_STORED_STATUS = {
    AssignmentStatus.ADMITTED: "admitted",
    AssignmentStatus.REJECTED: "not_admitted",
    AssignmentStatus.PENDING_INELIGIBLE: "pending",
}


class DecisionReason(str, Enum):
    """Why an application ended in its status (audit trail)."""
    ADMITTED = "admitted"
    QUOTA_FULL = "quota_full"
    ADMITTED_HIGHER_PREFERENCE = "admitted_higher_preference"
    COMBINATION_MISMATCH = "combination_mismatch"
    MISSING_REQUIRED_SUBJECT = "missing_required_subject"
    BELOW_MIN_SUBJECT_SCORE = "below_min_subject_score"
    BELOW_MIN_TOTAL_SCORE = "below_min_total_score"
    FORMULA_ERROR = "formula_error"
    QUOTA_UNAVAILABLE = "quota_unavailable"


@dataclass(frozen=True, order=True)
class QuotaKey:
    """Unit of capacity: one admission method of one major."""
    major_id: str
    admission_method: str

    def __str__(self) -> str:
        return f"{self.major_id}/{self.admission_method}"


def _freeze(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Preference:
    """One ranked application (nguyện vọng) of a candidate."""
    application_id: str
    quota_key: QuotaKey
    rank: int  # 1 = most preferred
    subject_scores: Mapping[str, Optional[float]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "subject_scores", _freeze(self.subject_scores))


@dataclass(frozen=True)
class Candidate:
    """A student as seen by one filter run."""
    candidate_id: str
    scores: Mapping[str, Optional[float]] = field(default_factory=dict)
    priority_points: float = 0.0
    preferences: Tuple[Preference, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "scores", _freeze(self.scores))
        object.__setattr__(
            self, "preferences", tuple(sorted(self.preferences, key=lambda p: p.rank))
        )


@dataclass(frozen=True)
class Quota:
    """Seat pool for one QuotaKey."""
    key: QuotaKey
    capacity: int
    conditions: Conditions = field(default_factory=Conditions)
    formula_id: Optional[str] = None


@dataclass(frozen=True)
class CompiledFormula:
    """A stored formula parsed into its expression tree."""
    formula_id: str
    name: str
    source: str
    expression: Expression


@dataclass(frozen=True)
class RunWarning:
    """Configuration problem that disabled part of a run without failing it."""
    code: str
    message: str
    quota_key: Optional[QuotaKey] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "quota_key": str(self.quota_key) if self.quota_key else None,
        }


@dataclass(frozen=True)
class FilterSnapshot:
    """
    Everything one filter run reads, captured once at start.

    ``quota_errors`` holds QuotaKeys whose configuration could not be used;
    every preference pointing at them is ineligible.
    """
    session_id: str
    candidates: Tuple[Candidate, ...] = ()
    quotas: Mapping[QuotaKey, Quota] = field(default_factory=dict)
    formulas: Mapping[str, CompiledFormula] = field(default_factory=dict)
    quota_errors: Mapping[QuotaKey, str] = field(default_factory=dict)
    warnings: Tuple[RunWarning, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "candidates", tuple(self.candidates))
        object.__setattr__(self, "quotas", _freeze(self.quotas))
        object.__setattr__(self, "formulas", _freeze(self.formulas))
        object.__setattr__(self, "quota_errors", _freeze(self.quota_errors))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    @property
    def application_count(self) -> int:
        return sum(len(c.preferences) for c in self.candidates)


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring one preference."""
    eligible: bool
    score: Optional[float] = None
    reason: Optional[DecisionReason] = None
    detail: str = ""


@dataclass(frozen=True)
class ScoredPreference:
    """A preference together with its scoring outcome."""
    candidate_id: str
    priority_points: float
    preference: Preference
    result: ScoreResult

    @property
    def quota_key(self) -> QuotaKey:
        return self.preference.quota_key

    @property
    def ranking_key(self) -> Tuple[float, float, str]:
        """Sort key inside a quota: score desc, priority desc, id asc."""
        return (-(self.result.score or 0.0), -self.priority_points, self.candidate_id)


@dataclass(frozen=True)
class Assignment:
    """Final record for one application."""
    application_id: str
    candidate_id: str
    quota_key: QuotaKey
    preference_rank: int
    status: AssignmentStatus
    calculated_score: Optional[float] = None
    rank_in_major: Optional[int] = None
    applicant_rank: Optional[int] = None
    reason: Optional[DecisionReason] = None
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response format."""
        return {
            "application_id": self.application_id,
            "candidate_id": self.candidate_id,
            "major_id": self.quota_key.major_id,
            "admission_method": self.quota_key.admission_method,
            "preference_priority": self.preference_rank,
            "status": self.status.value,
            "admission_status": self.status.stored_value,
            "calculated_score": self.calculated_score,
            "rank_in_major": self.rank_in_major,
            "applicant_rank": self.applicant_rank,
            "reason": self.reason.value if self.reason else None,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class FilterOutcome:
    """Complete result of one filter run."""
    session_id: str
    assignments: Tuple[Assignment, ...]
    warnings: Tuple[RunWarning, ...] = ()
    rounds: int = 0
    execution_time_ms: int = 0

    @property
    def total_candidates(self) -> int:
        return len({a.candidate_id for a in self.assignments})

    @property
    def admitted(self) -> Tuple[Assignment, ...]:
        return tuple(a for a in self.assignments if a.status is AssignmentStatus.ADMITTED)

    @property
    def admitted_count(self) -> int:
        return len(self.admitted)

    def for_candidate(self, candidate_id: str) -> Tuple[Assignment, ...]:
        return tuple(a for a in self.assignments if a.candidate_id == candidate_id)
