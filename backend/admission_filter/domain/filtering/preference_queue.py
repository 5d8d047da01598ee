"""
Preference Queue

Per-candidate ordered list of eligible preferences, most preferred first.
Ineligible preferences are kept aside so every application still produces
an audit record.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from admission_filter.domain.filtering.interfaces import ScoredPreference


@dataclass(frozen=True)
class PreferenceQueue:
    """Eligible preferences of one candidate, by rank ascending."""
    candidate_id: str
    priority_points: float
    eligible: Tuple[ScoredPreference, ...]
    ineligible: Tuple[ScoredPreference, ...]

    @classmethod
    def build(
        cls,
        candidate_id: str,
        priority_points: float,
        scored: Iterable[ScoredPreference],
    ) -> "PreferenceQueue":
        ordered = sorted(scored, key=lambda s: s.preference.rank)
        return cls(
            candidate_id=candidate_id,
            priority_points=priority_points,
            eligible=tuple(s for s in ordered if s.result.eligible),
            ineligible=tuple(s for s in ordered if not s.result.eligible),
        )

    def __len__(self) -> int:
        return len(self.eligible)

    @property
    def is_empty(self) -> bool:
        return not self.eligible

    def at(self, position: int) -> Optional[ScoredPreference]:
        """Entry at ``position`` in the queue, None once exhausted."""
        if 0 <= position < len(self.eligible):
            return self.eligible[position]
        return None

    @property
    def all_preferences(self) -> Tuple[ScoredPreference, ...]:
        return tuple(
            sorted(self.eligible + self.ineligible, key=lambda s: s.preference.rank)
        )
