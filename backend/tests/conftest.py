"""
Test configuration and fixtures for the Admission Filter service.

Provides shared fixtures for unit and integration tests.
"""

import pytest
from typing import AsyncGenerator, Dict, Optional, Sequence, Tuple
from unittest.mock import MagicMock, AsyncMock

from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from admission_filter.domain.filtering import (
    Candidate,
    Conditions,
    FilterSnapshot,
    Preference,
    Quota,
    QuotaKey,
)


A00 = ("math", "physics", "chemistry")


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app():
    """Get the FastAPI application."""
    from admission_filter.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Get synchronous test client."""
    return TestClient(app)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Get async test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_db_session():
    """Mock AsyncSession with transaction methods."""
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    return session


# =============================================================================
# Domain Builders
# =============================================================================

@pytest.fixture
def make_quota():
    """Build a Quota; conditions accept the stored camelCase JSON."""

    def _make(
        major: str,
        method: str = "A00",
        capacity: int = 1,
        conditions: Optional[Dict] = None,
        formula_id: Optional[str] = None,
    ) -> Quota:
        return Quota(
            key=QuotaKey(major, method),
            capacity=capacity,
            conditions=Conditions.model_validate(conditions or {}),
            formula_id=formula_id,
        )

    return _make


@pytest.fixture
def make_candidate():
    """
    Build a Candidate from (major, method, subject_scores) preferences,
    ranked in the order given.
    """

    def _make(
        candidate_id: str,
        preferences: Sequence[Tuple[str, str, Dict[str, Optional[float]]]],
        priority_points: float = 0.0,
    ) -> Candidate:
        prefs = tuple(
            Preference(
                application_id=f"{candidate_id}-{rank}",
                quota_key=QuotaKey(major, method),
                rank=rank,
                subject_scores=scores,
            )
            for rank, (major, method, scores) in enumerate(preferences, start=1)
        )
        merged: Dict[str, Optional[float]] = {}
        for _, _, scores in preferences:
            merged.update(scores)
        return Candidate(
            candidate_id=candidate_id,
            scores=merged,
            priority_points=priority_points,
            preferences=prefs,
        )

    return _make


@pytest.fixture
def make_snapshot():
    """Build a FilterSnapshot from candidates and quotas."""

    def _make(candidates, quotas, formulas=None, session_id: str = "session-1") -> FilterSnapshot:
        return FilterSnapshot(
            session_id=session_id,
            candidates=tuple(candidates),
            quotas={q.key: q for q in quotas},
            formulas=formulas or {},
        )

    return _make


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def a00_conditions():
    """Stored conditions for an A00 quota."""
    return {
        "minTotalScore": 15,
        "subjectCombinations": [list(A00)],
        "priorityBonus": {"enabled": True, "maxBonus": 2},
    }
