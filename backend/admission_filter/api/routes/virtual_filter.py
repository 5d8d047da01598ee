"""
Virtual Filter Routes

Trigger a filter run for an admission session and inspect the decisions
of the last run.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel

from admission_filter.api.dependencies import FilterServiceDep
from admission_filter.domain.filtering import Assignment, FilterOutcome


logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================

class RunWarningResponse(BaseModel):
    """Configuration problem found while loading the session."""
    code: str
    message: str
    quota_key: Optional[str] = None


class DecisionResponse(BaseModel):
    """Outcome of one application in a filter run."""
    application_id: str
    candidate_id: str
    major_id: str
    admission_method: str
    preference_priority: int
    status: str
    admission_status: str
    calculated_score: Optional[float] = None
    rank_in_major: Optional[int] = None
    applicant_rank: Optional[int] = None
    reason: Optional[str] = None
    detail: str = ""


class FilterRunResponse(BaseModel):
    """Summary of a filter run."""
    session_id: str
    total_students: int
    admitted_count: int
    rounds: int
    execution_time_ms: int
    warnings: List[RunWarningResponse]
    decisions: List[DecisionResponse]


class FilterResultsResponse(BaseModel):
    """Detailed decisions of the last run of a session."""
    session_id: str
    rounds: int
    total: int
    results: List[DecisionResponse]


def _decisions(assignments: Sequence[Assignment]) -> List[Dict[str, Any]]:
    return [a.to_dict() for a in assignments]


def _summary(outcome: FilterOutcome) -> FilterRunResponse:
    return FilterRunResponse(
        session_id=outcome.session_id,
        total_students=outcome.total_candidates,
        admitted_count=outcome.admitted_count,
        rounds=outcome.rounds,
        execution_time_ms=outcome.execution_time_ms,
        warnings=[w.to_dict() for w in outcome.warnings],
        decisions=_decisions(outcome.assignments),
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/filter/run/{session_id}", response_model=FilterRunResponse)
async def run_virtual_filter(session_id: UUID, service: FilterServiceDep):
    """
    Run the virtual filter for a session.

    Replaces calculated_score, admission_status and rank_in_major of every
    application in the session. Returns 409 while another run for the same
    session is executing.
    """
    logger.info(f"Filter run requested for session {session_id}")
    outcome = await service.run(session_id)
    return _summary(outcome)


@router.get("/sessions/{session_id}/filter-results", response_model=FilterResultsResponse)
async def get_filter_results(
    session_id: UUID,
    service: FilterServiceDep,
    student_id: Optional[str] = Query(None, description="Candidate ID card number"),
):
    """
    Per-application decisions of the last run, with reasons.

    Only runs executed by this process are available.
    """
    outcome, assignments = service.filter_results(session_id, student_id)
    return FilterResultsResponse(
        session_id=outcome.session_id,
        rounds=outcome.rounds,
        total=len(assignments),
        results=_decisions(assignments),
    )
