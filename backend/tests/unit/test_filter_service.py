"""
Unit tests for the virtual filter and results services.

Repositories and the database session are replaced with AsyncMock doubles.
"""

import threading
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from admission_filter.config.settings import Settings
from admission_filter.domain.filtering import AssignmentStatus, FilterOutcome
from admission_filter.domain.models import (
    ApplicationRecord,
    SessionQuotaRecord,
    StudentRecord,
)
from admission_filter.infrastructure.db.models import AdmissionStatus
from admission_filter.infrastructure.db.repositories import ApplicationResultRow, SessionRecords
from admission_filter.infrastructure.exceptions import (
    AllocationDivergedError,
    DatabaseError,
    FilterCancelledError,
    FilterTimeoutError,
    NotFoundError,
    RunInProgressError,
    ValidationError,
)
from admission_filter.infrastructure.services import (
    OutcomeStore,
    ResultsService,
    RunRegistry,
    VirtualFilterService,
)


A00 = {"subjectCombinations": [["math", "physics", "chemistry"]]}


@pytest.fixture
def session_records():
    """Two students competing for one CNTT/A00 seat, with KT as fallback."""
    return SessionRecords(
        students=[
            StudentRecord(id="s1", id_card="001", full_name="An", scores={"math": 9.0, "physics": 8.5, "chemistry": 8.0}),
            StudentRecord(id="s2", id_card="002", full_name="Bình", scores={"math": 8.5, "physics": 8.0, "chemistry": 8.0}),
        ],
        applications=[
            ApplicationRecord(id="a1", student_id="s1", major_id="CNTT", admission_method="A00", preference_priority=1),
            ApplicationRecord(id="a2", student_id="s2", major_id="CNTT", admission_method="A00", preference_priority=1),
            ApplicationRecord(id="a3", student_id="s2", major_id="KT", admission_method="A00", preference_priority=2),
        ],
        quotas=[
            SessionQuotaRecord(id="q1", major_id="CNTT", admission_method="A00", quota=1, conditions=A00),
            SessionQuotaRecord(id="q2", major_id="KT", admission_method="A00", quota=1, conditions=A00),
        ],
        formulas=[],
    )


@pytest.fixture
def config():
    return Settings(_env_file=None, filter_timeout_seconds=5)


@pytest.fixture
def make_service(mock_db_session, config, session_records):
    """VirtualFilterService with mocked repositories and private run state."""

    def _make(engine=None, settings=None):
        service = VirtualFilterService(
            mock_db_session,
            config=settings or config,
            engine=engine,
            registry=RunRegistry(),
            outcomes=OutcomeStore(),
        )
        service._session_repo = AsyncMock()
        service._snapshot_repo = AsyncMock()
        service._snapshot_repo.load.return_value = session_records
        service._application_repo = AsyncMock()
        service._application_repo.replace_results.return_value = 3
        return service

    return _make


class TestVirtualFilterService:
    """Tests for VirtualFilterService.run."""

    @pytest.mark.asyncio
    async def test_run_persists_and_commits(self, make_service, mock_db_session):
        service = make_service()
        session_id = uuid4()

        outcome = await service.run(session_id)

        assert outcome.session_id == str(session_id)
        assert outcome.admitted_count == 2
        statuses = {a.application_id: a.status for a in outcome.assignments}
        assert statuses == {
            "a1": AssignmentStatus.ADMITTED,
            "a2": AssignmentStatus.REJECTED,
            "a3": AssignmentStatus.ADMITTED,
        }
        service._session_repo.get_or_raise.assert_awaited_once_with(session_id)
        service._application_repo.replace_results.assert_awaited_once_with(session_id, outcome.assignments)
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_session(self, make_service):
        service = make_service()
        service._session_repo.get_or_raise.side_effect = NotFoundError("missing")

        with pytest.raises(NotFoundError):
            await service.run(uuid4())

        service._snapshot_repo.load.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_run_rejected(self, make_service):
        service = make_service()
        session_id = uuid4()

        with service._registry.hold(str(session_id)):
            with pytest.raises(RunInProgressError):
                await service.run(session_id)

        service._application_repo.replace_results.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_divergence_writes_nothing(self, make_service, mock_db_session):
        engine = MagicMock()
        engine.run.side_effect = AllocationDivergedError(rounds=5, max_rounds=4)
        service = make_service(engine=engine)

        with pytest.raises(AllocationDivergedError):
            await service.run(uuid4())

        service._application_repo.replace_results.assert_not_awaited()
        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_cancels_engine(self, make_service, mock_db_session):
        seen = {}

        def slow_run(snapshot, cancel_event):
            seen["event"] = cancel_event
            cancel_event.wait(5)
            raise FilterCancelledError("cancelled")

        engine = MagicMock()
        engine.run.side_effect = slow_run
        service = make_service(
            engine=engine,
            settings=Settings(_env_file=None, filter_timeout_seconds=0.05),
        )

        with pytest.raises(FilterTimeoutError) as exc_info:
            await service.run(uuid4())

        assert exc_info.value.details["timeout_seconds"] == 0.05
        assert isinstance(seen["event"], threading.Event)
        assert seen["event"].is_set()
        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_persist_failure_rolls_back(self, make_service, mock_db_session):
        service = make_service()
        service._application_repo.replace_results.side_effect = DatabaseError("write failed")
        session_id = uuid4()

        with pytest.raises(DatabaseError):
            await service.run(session_id)

        mock_db_session.rollback.assert_awaited_once()
        with pytest.raises(NotFoundError):
            service.filter_results(session_id)

    @pytest.mark.asyncio
    async def test_block_method_map_from_settings(self, make_service, session_records):
        session_records.quotas[0] = SessionQuotaRecord(
            id="q1", major_id="CNTT", admission_method="THPT", quota=1, conditions=A00,
        )
        service = make_service(settings=Settings(_env_file=None, block_method_map={"A00": "THPT"}))

        snapshot = await service.load_snapshot(uuid4())

        assert {p.quota_key.admission_method for c in snapshot.candidates for p in c.preferences} == {"THPT", "A00"}
        assert snapshot.warnings == ()


class TestFilterResults:
    """Tests for VirtualFilterService.filter_results."""

    def test_not_run_yet(self, make_service):
        with pytest.raises(NotFoundError):
            make_service().filter_results(uuid4())

    @pytest.mark.asyncio
    async def test_after_run(self, make_service):
        service = make_service()
        session_id = uuid4()
        await service.run(session_id)

        outcome, everything = service.filter_results(session_id)
        _, mine = service.filter_results(session_id, student_id="002")

        assert isinstance(outcome, FilterOutcome)
        assert len(everything) == 3
        assert [a.application_id for a in mine] == ["a2", "a3"]


# ============== ResultsService ==============

def result_row(status, rank=1, session_id="sess-1", **overrides):
    values = dict(
        application_id=f"app-{rank}",
        session_id=session_id,
        session_name="2026",
        id_card="001",
        full_name="An",
        major_code="CNTT",
        major_name="Công nghệ thông tin",
        admission_method="A00",
        preference_priority=rank,
        calculated_score=25.5,
        admission_status=status,
        rank_in_major=1 if status == AdmissionStatus.ADMITTED else None,
    )
    values.update(overrides)
    return ApplicationResultRow(**values)


@pytest.fixture
def results_service(mock_db_session):
    service = ResultsService(mock_db_session)
    service._session_repo = AsyncMock()
    service._application_repo = AsyncMock()
    return service


class TestResultsService:
    """Tests for ResultsService."""

    @pytest.mark.asyncio
    async def test_partitions_results(self, results_service):
        rows = [
            result_row(AdmissionStatus.ADMITTED, rank=1),
            result_row(AdmissionStatus.NOT_ADMITTED, rank=2),
            result_row(AdmissionStatus.PENDING, rank=3),
        ]
        results_service._application_repo.list_results.return_value = rows
        session_id = uuid4()

        results = await results_service.get_session_results(session_id)

        assert results.session_id == str(session_id)
        assert [r.preference_priority for r in results.admitted] == [1]
        assert [r.preference_priority for r in results.not_admitted] == [2]
        assert len(results.all) == 3

    @pytest.mark.asyncio
    async def test_lookup_accepted(self, results_service):
        results_service._application_repo.find_by_id_card.return_value = [
            result_row(AdmissionStatus.NOT_ADMITTED, rank=1, major_code="YD"),
            result_row(AdmissionStatus.ADMITTED, rank=2),
        ]

        result = await results_service.lookup(" 001 ")

        assert result.status == "accepted"
        assert result.major_code == "CNTT"
        assert result.preference_priority == 2
        results_service._application_repo.find_by_id_card.assert_awaited_once_with("001")

    @pytest.mark.asyncio
    async def test_lookup_rejected(self, results_service):
        results_service._application_repo.find_by_id_card.return_value = [
            result_row(AdmissionStatus.NOT_ADMITTED, rank=1),
            result_row(AdmissionStatus.PENDING, rank=2),
        ]

        result = await results_service.lookup("001")

        assert result.status == "rejected"
        assert result.preference_priority == 1

    @pytest.mark.asyncio
    async def test_lookup_pending(self, results_service):
        results_service._application_repo.find_by_id_card.return_value = [
            result_row(AdmissionStatus.PENDING, rank=1, calculated_score=None),
        ]

        assert (await results_service.lookup("001")).status == "pending"

    @pytest.mark.asyncio
    async def test_lookup_uses_latest_session(self, results_service):
        results_service._application_repo.find_by_id_card.return_value = [
            result_row(AdmissionStatus.NOT_ADMITTED, rank=1, session_id="new"),
            result_row(AdmissionStatus.ADMITTED, rank=1, session_id="old"),
        ]

        assert (await results_service.lookup("001")).status == "rejected"

    @pytest.mark.asyncio
    async def test_lookup_unknown(self, results_service):
        results_service._application_repo.find_by_id_card.return_value = []
        with pytest.raises(NotFoundError):
            await results_service.lookup("999")

    @pytest.mark.asyncio
    async def test_lookup_blank(self, results_service):
        with pytest.raises(ValidationError):
            await results_service.lookup("   ")
