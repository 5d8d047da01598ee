"""
Results Routes

Stored admission results per session and the public lookup by ID card.
"""

from dataclasses import asdict
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from admission_filter.api.dependencies import ResultsServiceDep
from admission_filter.infrastructure.db.repositories import ApplicationResultRow


router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================

class ApplicationResultResponse(BaseModel):
    """Stored result of one application."""
    application_id: str
    id_card: str
    full_name: str
    major_code: str
    major_name: str
    admission_method: str
    preference_priority: int
    calculated_score: Optional[float] = None
    admission_status: str
    rank_in_major: Optional[int] = None


class SessionResultsResponse(BaseModel):
    """Results of a session partitioned by status."""
    session_id: str
    admitted: List[ApplicationResultResponse]
    not_admitted: List[ApplicationResultResponse]
    all: List[ApplicationResultResponse]


class PublicResultResponse(BaseModel):
    """Public admission result of one student."""
    id_card: str
    full_name: str
    session_name: str
    status: str
    major_code: str
    major_name: str
    admission_method: str
    calculated_score: Optional[float] = None
    preference_priority: int


def _to_response(row: ApplicationResultRow) -> ApplicationResultResponse:
    return ApplicationResultResponse(
        application_id=row.application_id,
        id_card=row.id_card,
        full_name=row.full_name,
        major_code=row.major_code,
        major_name=row.major_name,
        admission_method=row.admission_method,
        preference_priority=row.preference_priority,
        calculated_score=row.calculated_score,
        admission_status=row.admission_status.value,
        rank_in_major=row.rank_in_major,
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/sessions/{session_id}/results", response_model=SessionResultsResponse)
async def get_session_results(session_id: UUID, service: ResultsServiceDep):
    """Stored results of the last committed run of a session."""
    results = await service.get_session_results(session_id)
    return SessionResultsResponse(
        session_id=results.session_id,
        admitted=[_to_response(r) for r in results.admitted],
        not_admitted=[_to_response(r) for r in results.not_admitted],
        all=[_to_response(r) for r in results.all],
    )


@router.get("/public/results/lookup/{id_card}", response_model=PublicResultResponse)
async def lookup_result(id_card: str, service: ResultsServiceDep):
    """
    Look up a student's result by ID card number.

    Status is one of: accepted, rejected, pending.
    """
    result = await service.lookup(id_card)
    return PublicResultResponse(**asdict(result))
