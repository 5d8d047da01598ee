"""
Run State

Process-wide bookkeeping for virtual filter runs: which sessions are
running right now, and the last outcome of each session.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Set

from admission_filter.domain.filtering.interfaces import FilterOutcome
from admission_filter.infrastructure.exceptions import RunInProgressError


class RunRegistry:
    """
    Serializes filter runs per session.

    A second run for a session that is already running fails immediately
    with RunInProgressError; runs are never queued.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._active: Set[str] = set()

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        with self._lock:
            if session_id in self._active:
                raise RunInProgressError(session_id)
            self._active.add(session_id)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(session_id)

    def is_running(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._active


class OutcomeStore:
    """Last completed FilterOutcome per session, kept in memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self._outcomes: Dict[str, FilterOutcome] = {}

    def put(self, outcome: FilterOutcome) -> None:
        with self._lock:
            self._outcomes[outcome.session_id] = outcome

    def get(self, session_id: str) -> Optional[FilterOutcome]:
        with self._lock:
            return self._outcomes.get(session_id)


run_registry = RunRegistry()
outcome_store = OutcomeStore()
