"""
Virtual Filter Engine

Runs one complete virtual filtering (lọc ảo) pass over a frozen snapshot:
parallel scoring, deferred-acceptance allocation, result aggregation.
Pure apart from logging; the caller owns loading and persisting.
"""

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from admission_filter.domain.filtering.aggregator import ResultAggregator
from admission_filter.domain.filtering.allocator import QuotaAllocator
from admission_filter.domain.filtering.interfaces import (
    Candidate,
    FilterOutcome,
    FilterSnapshot,
    ScoredPreference,
)
from admission_filter.domain.filtering.preference_queue import PreferenceQueue
from admission_filter.domain.filtering.score_calculator import ScoreCalculator
from admission_filter.infrastructure.exceptions import (
    AllocationDivergedError,
    FilterCancelledError,
)


logger = logging.getLogger(__name__)


class VirtualFilterEngine:
    """
    Virtual filter pipeline.

    Scoring is fanned out across a thread pool (candidates share no mutable
    state) and merged in snapshot order before allocation starts.
    """

    def __init__(
        self,
        calculator: Optional[ScoreCalculator] = None,
        allocator: Optional[QuotaAllocator] = None,
        aggregator: Optional[ResultAggregator] = None,
        max_workers: Optional[int] = None,
    ):
        self._calculator = calculator or ScoreCalculator()
        self._allocator = allocator or QuotaAllocator()
        self._aggregator = aggregator or ResultAggregator()
        self._max_workers = max_workers or os.cpu_count() or 1

    def run(
        self,
        snapshot: FilterSnapshot,
        cancel_event: Optional[threading.Event] = None,
    ) -> FilterOutcome:
        """
        Execute the filter.

        Raises:
            AllocationDivergedError: allocation exceeded its round bound
            FilterCancelledError: ``cancel_event`` was set mid-run
        """
        started = time.perf_counter()
        logger.info(
            f"Virtual filter started for session {snapshot.session_id}: "
            f"{len(snapshot.candidates)} candidates, {snapshot.application_count} applications, "
            f"{len(snapshot.quotas)} quotas"
        )

        queues = self.build_queues(snapshot, cancel_event)

        capacities = {key: quota.capacity for key, quota in snapshot.quotas.items()}
        try:
            allocation = self._allocator.allocate(queues, capacities, cancel_event)
        except (AllocationDivergedError, FilterCancelledError) as e:
            e.details.setdefault("session_id", snapshot.session_id)
            raise

        assignments = self._aggregator.aggregate(queues, allocation)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        outcome = FilterOutcome(
            session_id=snapshot.session_id,
            assignments=assignments,
            warnings=snapshot.warnings,
            rounds=allocation.rounds,
            execution_time_ms=elapsed_ms,
        )
        logger.info(
            f"Virtual filter finished for session {snapshot.session_id}: "
            f"{outcome.admitted_count} admitted after {allocation.rounds} rounds in {elapsed_ms}ms"
        )
        return outcome

    def build_queues(
        self,
        snapshot: FilterSnapshot,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[PreferenceQueue]:
        """Score every preference and build each candidate's queue."""

        def score_candidate(candidate: Candidate) -> PreferenceQueue:
            if cancel_event is not None and cancel_event.is_set():
                raise FilterCancelledError("Scoring cancelled", session_id=snapshot.session_id)
            scored = []
            for preference in candidate.preferences:
                quota = snapshot.quotas.get(preference.quota_key)
                formula = None
                if quota is not None and quota.formula_id is not None:
                    formula = snapshot.formulas.get(quota.formula_id)
                result = self._calculator.score(
                    candidate,
                    preference,
                    quota,
                    formula,
                    quota_error=snapshot.quota_errors.get(preference.quota_key),
                )
                scored.append(ScoredPreference(
                    candidate_id=candidate.candidate_id,
                    priority_points=candidate.priority_points,
                    preference=preference,
                    result=result,
                ))
            return PreferenceQueue.build(candidate.candidate_id, candidate.priority_points, scored)

        if not snapshot.candidates:
            return []

        workers = min(self._max_workers, len(snapshot.candidates))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="filter-score") as pool:
            # map() yields in input order, keeping the merge deterministic
            return list(pool.map(score_candidate, snapshot.candidates))
