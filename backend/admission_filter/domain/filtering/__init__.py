# Virtual filtering (lọc ảo) engine
from admission_filter.domain.filtering.interfaces import (
    QuotaKey,
    Preference,
    Candidate,
    Quota,
    CompiledFormula,
    FilterSnapshot,
    ScoreResult,
    ScoredPreference,
    Assignment,
    AssignmentStatus,
    DecisionReason,
    FilterOutcome,
    RunWarning,
)
from admission_filter.domain.filtering.conditions import Conditions, PriorityBonus
from admission_filter.domain.filtering.formula import FormulaEvaluator
from admission_filter.domain.filtering.eligibility import EligibilityChecker
from admission_filter.domain.filtering.score_calculator import ScoreCalculator
from admission_filter.domain.filtering.preference_queue import PreferenceQueue
from admission_filter.domain.filtering.allocator import QuotaAllocator, AllocationResult
from admission_filter.domain.filtering.aggregator import ResultAggregator
from admission_filter.domain.filtering.snapshot import SnapshotBuilder
from admission_filter.domain.filtering.engine import VirtualFilterEngine

__all__ = [
    "QuotaKey",
    "Preference",
    "Candidate",
    "Quota",
    "CompiledFormula",
    "FilterSnapshot",
    "ScoreResult",
    "ScoredPreference",
    "Assignment",
    "AssignmentStatus",
    "DecisionReason",
    "FilterOutcome",
    "RunWarning",
    "Conditions",
    "PriorityBonus",
    "FormulaEvaluator",
    "EligibilityChecker",
    "ScoreCalculator",
    "PreferenceQueue",
    "QuotaAllocator",
    "AllocationResult",
    "ResultAggregator",
    "SnapshotBuilder",
    "VirtualFilterEngine",
]
