"""
Result Aggregator

Turns the allocator's stable assignment into one Assignment record per
original application, ineligible ones included.
"""

from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from admission_filter.domain.filtering.allocator import AllocationResult
from admission_filter.domain.filtering.interfaces import (
    Assignment,
    AssignmentStatus,
    DecisionReason,
    QuotaKey,
    ScoredPreference,
)
from admission_filter.domain.filtering.preference_queue import PreferenceQueue


class ResultAggregator:
    """Builds the per-application output of a filter run."""

    def aggregate(
        self,
        queues: Sequence[PreferenceQueue],
        allocation: AllocationResult,
    ) -> Tuple[Assignment, ...]:
        """
        Emit assignments ordered by candidate id, then preference rank.

        - admitted: holds a seat; ``rank_in_major`` is the 1-based position
          inside the quota's accepted set
        - rejected: eligible but outscored, or never reached because a
          better preference admitted the candidate
        - pending-ineligible: never eligible; no score
        """
        seat_ranks: Dict[str, int] = {}
        for entries in allocation.accepted.values():
            for position, entry in enumerate(entries, start=1):
                seat_ranks[entry.preference.application_id] = position

        applicant_ranks = self._applicant_ranks(queues)

        assignments: List[Assignment] = []
        for queue in sorted(queues, key=lambda q: q.candidate_id):
            final_position = allocation.positions.get(queue.candidate_id, 0)
            eligible_index = {
                entry.preference.application_id: index
                for index, entry in enumerate(queue.eligible)
            }

            for entry in queue.all_preferences:
                application_id = entry.preference.application_id

                if not entry.result.eligible:
                    assignments.append(self._record(
                        entry,
                        AssignmentStatus.PENDING_INELIGIBLE,
                        reason=entry.result.reason,
                        detail=entry.result.detail,
                    ))
                    continue

                index = eligible_index[application_id]
                if application_id in seat_ranks:
                    assignments.append(self._record(
                        entry,
                        AssignmentStatus.ADMITTED,
                        rank_in_major=seat_ranks[application_id],
                        applicant_rank=applicant_ranks[application_id],
                        reason=DecisionReason.ADMITTED,
                    ))
                elif index < final_position:
                    assignments.append(self._record(
                        entry,
                        AssignmentStatus.REJECTED,
                        applicant_rank=applicant_ranks[application_id],
                        reason=DecisionReason.QUOTA_FULL,
                        detail=f"Outscored at {entry.quota_key}",
                    ))
                else:
                    assignments.append(self._record(
                        entry,
                        AssignmentStatus.REJECTED,
                        applicant_rank=applicant_ranks[application_id],
                        reason=DecisionReason.ADMITTED_HIGHER_PREFERENCE,
                        detail="Admitted to a more preferred application",
                    ))

        return tuple(assignments)

    @staticmethod
    def _applicant_ranks(queues: Sequence[PreferenceQueue]) -> Dict[str, int]:
        """Position of each eligible application among all applicants to its quota."""
        by_key: Dict[QuotaKey, List[ScoredPreference]] = defaultdict(list)
        for queue in queues:
            for entry in queue.eligible:
                by_key[entry.quota_key].append(entry)

        ranks: Dict[str, int] = {}
        for entries in by_key.values():
            entries.sort(key=lambda e: e.ranking_key)
            for position, entry in enumerate(entries, start=1):
                ranks[entry.preference.application_id] = position
        return ranks

    @staticmethod
    def _record(
        entry: ScoredPreference,
        status: AssignmentStatus,
        rank_in_major=None,
        applicant_rank=None,
        reason=None,
        detail: str = "",
    ) -> Assignment:
        return Assignment(
            application_id=entry.preference.application_id,
            candidate_id=entry.candidate_id,
            quota_key=entry.quota_key,
            preference_rank=entry.preference.rank,
            status=status,
            calculated_score=entry.result.score,
            rank_in_major=rank_in_major,
            applicant_rank=applicant_rank,
            reason=reason,
            detail=detail,
        )
