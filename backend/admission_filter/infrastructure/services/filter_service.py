"""
Virtual Filter Service

Runs the virtual filter (lọc ảo) for one admission session:
load snapshot -> run engine off the event loop -> persist results.
"""

import asyncio
import logging
import threading
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admission_filter.config.settings import Settings, get_settings
from admission_filter.domain.filtering import (
    Assignment,
    FilterOutcome,
    FilterSnapshot,
    QuotaAllocator,
    ScoreCalculator,
    SnapshotBuilder,
    VirtualFilterEngine,
)
from admission_filter.infrastructure.db.repositories import (
    AdmissionSessionRepository,
    ApplicationRepository,
    FilterSnapshotRepository,
)
from admission_filter.infrastructure.exceptions import (
    FilterError,
    FilterTimeoutError,
    NotFoundError,
)
from admission_filter.infrastructure.services.run_state import (
    OutcomeStore,
    RunRegistry,
    outcome_store,
    run_registry,
)


logger = logging.getLogger(__name__)


def build_engine(config: Settings) -> VirtualFilterEngine:
    """Create an engine tuned by the application settings."""
    return VirtualFilterEngine(
        calculator=ScoreCalculator(precision=config.score_precision),
        allocator=QuotaAllocator(max_rounds=config.max_allocation_rounds),
        max_workers=config.scoring_max_workers,
    )


class VirtualFilterService:
    """
    Orchestrates one filter run per call.

    The engine is pure; this service owns the session lock, the timeout,
    and the single transaction that replaces the session's results.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: Optional[Settings] = None,
        engine: Optional[VirtualFilterEngine] = None,
        registry: Optional[RunRegistry] = None,
        outcomes: Optional[OutcomeStore] = None,
    ):
        self._session = session
        self._config = config or get_settings()
        self._engine = engine or build_engine(self._config)
        self._registry = registry or run_registry
        self._outcomes = outcomes or outcome_store

        self._session_repo = AdmissionSessionRepository(session)
        self._snapshot_repo = FilterSnapshotRepository(session)
        self._application_repo = ApplicationRepository(session)

    async def run(self, session_id: UUID) -> FilterOutcome:
        """
        Run the virtual filter for a session and persist the results.

        Raises:
            NotFoundError: Unknown session
            RunInProgressError: A run for the session is already executing
            AllocationDivergedError: Allocation did not settle; nothing is written
            FilterTimeoutError: The run exceeded FILTER_TIMEOUT_SECONDS
        """
        key = str(session_id)
        with self._registry.hold(key):
            await self._session_repo.get_or_raise(session_id)
            snapshot = await self.load_snapshot(session_id)

            outcome = await self._run_engine(snapshot)

            try:
                updated = await self._application_repo.replace_results(
                    session_id, outcome.assignments
                )
                await self._session.commit()
            except Exception:
                await self._session.rollback()
                logger.exception(f"Persisting filter results failed for session {key}")
                raise

            self._outcomes.put(outcome)
            logger.info(
                f"Session {key}: stored results for {updated} applications "
                f"({outcome.admitted_count} admitted, {len(outcome.warnings)} warnings)"
            )
            return outcome

    async def load_snapshot(self, session_id: UUID) -> FilterSnapshot:
        """Read the session once and freeze it for the engine."""
        records = await self._snapshot_repo.load(session_id)
        builder = SnapshotBuilder(self._config.block_method_map)
        return builder.build(
            str(session_id),
            records.students,
            records.applications,
            records.quotas,
            records.formulas,
        )

    def filter_results(
        self,
        session_id: UUID,
        student_id: Optional[str] = None,
    ) -> Tuple[FilterOutcome, Tuple[Assignment, ...]]:
        """
        Detailed decisions of the last run of a session in this process.

        Args:
            student_id: Restrict to one candidate (ID card number)

        Raises:
            NotFoundError: The session has not been run since startup
        """
        outcome = self._outcomes.get(str(session_id))
        if outcome is None:
            raise NotFoundError(
                f"No filter run recorded for session {session_id}",
                operation="filter_results",
            )
        if student_id:
            return outcome, outcome.for_candidate(student_id)
        return outcome, outcome.assignments

    async def _run_engine(self, snapshot: FilterSnapshot) -> FilterOutcome:
        cancel_event = threading.Event()
        timeout = self._config.filter_timeout_seconds
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._engine.run, snapshot, cancel_event),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            # Stops the worker thread at its next checkpoint
            cancel_event.set()
            logger.error(f"Session {snapshot.session_id}: filter run timed out after {timeout}s")
            raise FilterTimeoutError(snapshot.session_id, timeout) from e
        except FilterError:
            logger.error(f"Session {snapshot.session_id}: filter run failed", exc_info=True)
            raise
