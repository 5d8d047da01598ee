"""
Results Service

Read side of the virtual filter: stored results per session and the
public lookup by ID card number.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admission_filter.infrastructure.db.models import AdmissionStatus
from admission_filter.infrastructure.db.repositories import (
    AdmissionSessionRepository,
    ApplicationRepository,
    ApplicationResultRow,
)
from admission_filter.infrastructure.exceptions import NotFoundError, ValidationError


logger = logging.getLogger(__name__)


PUBLIC_STATUS = {
    AdmissionStatus.ADMITTED: "accepted",
    AdmissionStatus.NOT_ADMITTED: "rejected",
    AdmissionStatus.PENDING: "pending",
}


@dataclass(frozen=True)
class SessionResults:
    """Stored results of one session, partitioned by status."""
    session_id: str
    admitted: List[ApplicationResultRow]
    not_admitted: List[ApplicationResultRow]
    all: List[ApplicationResultRow]


@dataclass(frozen=True)
class PublicResult:
    """What a student sees when looking up their own result."""
    id_card: str
    full_name: str
    session_name: str
    status: str
    major_code: str
    major_name: str
    admission_method: str
    calculated_score: Optional[float]
    preference_priority: int


class ResultsService:
    """Queries over persisted filter results."""

    def __init__(self, session: AsyncSession):
        self._session_repo = AdmissionSessionRepository(session)
        self._application_repo = ApplicationRepository(session)

    async def get_session_results(self, session_id: UUID) -> SessionResults:
        """
        Raises:
            NotFoundError: Unknown session
        """
        await self._session_repo.get_or_raise(session_id)
        rows = await self._application_repo.list_results(session_id)
        return SessionResults(
            session_id=str(session_id),
            admitted=[r for r in rows if r.admission_status == AdmissionStatus.ADMITTED],
            not_admitted=[r for r in rows if r.admission_status == AdmissionStatus.NOT_ADMITTED],
            all=rows,
        )

    async def lookup(self, id_card: str) -> PublicResult:
        """
        Result of a student in their most recent session.

        The admitted application wins; otherwise the most preferred
        application is reported. Status is "pending" only while none of the
        student's applications has been decided.

        Raises:
            ValidationError: Blank ID card number
            NotFoundError: No applications for this ID card
        """
        id_card = id_card.strip()
        if not id_card:
            raise ValidationError("ID card number is required")

        rows = await self._application_repo.find_by_id_card(id_card)
        if not rows:
            raise NotFoundError(
                f"No admission result found for ID card {id_card}",
                operation="lookup",
                table="applications",
            )

        # Rows come newest session first, then by preference
        latest = [r for r in rows if r.session_id == rows[0].session_id]
        admitted = [r for r in latest if r.admission_status == AdmissionStatus.ADMITTED]
        row = admitted[0] if admitted else latest[0]

        if admitted:
            status = PUBLIC_STATUS[AdmissionStatus.ADMITTED]
        elif all(r.admission_status == AdmissionStatus.PENDING for r in latest):
            status = PUBLIC_STATUS[AdmissionStatus.PENDING]
        else:
            status = PUBLIC_STATUS[AdmissionStatus.NOT_ADMITTED]

        logger.debug(f"Public lookup for {id_card}: {status}")
        return PublicResult(
            id_card=row.id_card,
            full_name=row.full_name,
            session_name=row.session_name,
            status=status,
            major_code=row.major_code,
            major_name=row.major_name,
            admission_method=row.admission_method,
            calculated_score=row.calculated_score,
            preference_priority=row.preference_priority,
        )
