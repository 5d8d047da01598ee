"""
Quota Allocator

Candidate-proposing deferred acceptance with passive, score-ranked quotas.

Each round:
1. every unsettled candidate proposes to the head of its remaining queue;
2. once all proposals are collected, each quota re-sorts the candidates it
   already holds together with its new proposers (score desc, priority
   points desc, candidate id asc) and keeps the top ``capacity``;
3. everyone else advances to their next eligible preference.

Held candidates can be displaced by stronger proposers in later rounds.
The loop stops at the fixed point where no candidate has a new proposal.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from admission_filter.domain.filtering.interfaces import QuotaKey, ScoredPreference
from admission_filter.domain.filtering.preference_queue import PreferenceQueue
from admission_filter.infrastructure.exceptions import (
    AllocationDivergedError,
    FilterCancelledError,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationResult:
    """Stable assignment reached by the allocator."""
    accepted: Mapping[QuotaKey, Tuple[ScoredPreference, ...]] = field(default_factory=dict)
    positions: Mapping[str, int] = field(default_factory=dict)
    rounds: int = 0

    def seat_of(self, candidate_id: str) -> Optional[ScoredPreference]:
        """The entry a candidate is admitted on, if any."""
        for entries in self.accepted.values():
            for entry in entries:
                if entry.candidate_id == candidate_id:
                    return entry
        return None


class QuotaAllocator:
    """
    Runs the allocation rounds over all candidates' preference queues.

    Args:
        max_rounds: Explicit round bound. When None the bound is the total
            number of eligible preferences plus one, which a terminating
            run can never exceed (each round after the first consumes at
            least one queue entry).
    """

    def __init__(self, max_rounds: Optional[int] = None):
        self._max_rounds = max_rounds

    @staticmethod
    def round_bound(queues: Sequence[PreferenceQueue]) -> int:
        return sum(len(q) for q in queues) + 1

    def allocate(
        self,
        queues: Sequence[PreferenceQueue],
        capacities: Mapping[QuotaKey, int],
        cancel_event: Optional[threading.Event] = None,
    ) -> AllocationResult:
        """
        Allocate seats.

        Raises:
            AllocationDivergedError: round bound exceeded
            FilterCancelledError: ``cancel_event`` was set between rounds
        """
        max_rounds = self._max_rounds or self.round_bound(queues)
        by_id: Dict[str, PreferenceQueue] = {q.candidate_id: q for q in queues}
        positions: Dict[str, int] = {q.candidate_id: 0 for q in queues}
        held: Dict[QuotaKey, List[ScoredPreference]] = {}

        proposing = sorted(q.candidate_id for q in queues if not q.is_empty)
        rounds = 0

        while proposing:
            if cancel_event is not None and cancel_event.is_set():
                raise FilterCancelledError("Allocation cancelled", details={"rounds": rounds})

            rounds += 1
            if rounds > max_rounds:
                raise AllocationDivergedError(rounds=rounds, max_rounds=max_rounds)

            # Barrier: collect the whole round before any quota decides
            incoming: Dict[QuotaKey, List[ScoredPreference]] = defaultdict(list)
            for candidate_id in proposing:
                entry = by_id[candidate_id].at(positions[candidate_id])
                incoming[entry.quota_key].append(entry)

            rejected: List[ScoredPreference] = []
            for key in sorted(incoming):
                pool = held.get(key, []) + incoming[key]
                pool.sort(key=lambda e: e.ranking_key)
                capacity = capacities.get(key, 0)
                held[key] = pool[:capacity]
                rejected.extend(pool[capacity:])

            proposing = []
            for entry in rejected:
                candidate_id = entry.candidate_id
                positions[candidate_id] += 1
                if by_id[candidate_id].at(positions[candidate_id]) is not None:
                    proposing.append(candidate_id)
            proposing.sort()

            logger.debug(
                f"Allocation round {rounds}: {len(rejected)} rejected, {len(proposing)} re-proposing"
            )

        return AllocationResult(
            accepted={key: tuple(entries) for key, entries in held.items() if entries},
            positions=positions,
            rounds=rounds,
        )
