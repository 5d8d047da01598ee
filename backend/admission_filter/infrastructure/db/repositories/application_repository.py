"""
Application Repository

Writes filter results back to the applications table and serves the
result views.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from admission_filter.domain.filtering.interfaces import Assignment
from admission_filter.infrastructure.db.models import (
    AdmissionSession,
    AdmissionStatus,
    Application,
    Major,
    Student,
)


@dataclass(frozen=True)
class ApplicationResultRow:
    """Application joined with its student and major."""
    application_id: str
    session_id: str
    session_name: str
    id_card: str
    full_name: str
    major_code: str
    major_name: str
    admission_method: str
    preference_priority: int
    calculated_score: Optional[float]
    admission_status: AdmissionStatus
    rank_in_major: Optional[int]


class ApplicationRepository:
    """Repository for application results."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def replace_results(
        self,
        session_id: UUID,
        assignments: Sequence[Assignment],
    ) -> int:
        """
        Replace the stored results of a session with a run's assignments.

        Every application of the session is reset first, so rows the run
        did not emit (orphaned applications) end up pending. The caller
        owns the transaction.

        Returns:
            Number of applications updated from the run
        """
        await self.session.execute(
            update(Application)
            .where(Application.session_id == session_id)
            .values(
                calculated_score=None,
                admission_status=AdmissionStatus.PENDING.value,
                rank_in_major=None,
            )
        )

        rows = [
            {
                "id": UUID(a.application_id),
                "calculated_score": a.calculated_score,
                "admission_status": a.status.stored_value,
                "rank_in_major": a.rank_in_major,
            }
            for a in assignments
        ]
        if rows:
            await self.session.execute(update(Application), rows)
        await self.session.flush()
        return len(rows)

    async def list_results(self, session_id: UUID) -> List[ApplicationResultRow]:
        """All applications of a session, grouped by major and method, best first."""
        stmt = (
            self._joined()
            .where(Application.session_id == session_id)
            .order_by(
                Major.code,
                Application.admission_method,
                Application.rank_in_major.asc().nulls_last(),
                Application.calculated_score.desc().nulls_last(),
                Student.id_card,
            )
        )
        return await self._rows(stmt)

    async def find_by_id_card(self, id_card: str) -> List[ApplicationResultRow]:
        """Applications of a student across sessions, in preference order."""
        stmt = (
            self._joined()
            .where(Student.id_card == id_card)
            .order_by(
                AdmissionSession.year.desc(),
                AdmissionSession.created_at.desc(),
                Application.preference_priority,
            )
        )
        return await self._rows(stmt)

    @staticmethod
    def _joined():
        return (
            select(Application, Student, Major, AdmissionSession)
            .join(Student, Application.student_id == Student.id)
            .join(Major, Application.major_id == Major.id)
            .join(AdmissionSession, Application.session_id == AdmissionSession.id)
        )

    async def _rows(self, stmt) -> List[ApplicationResultRow]:
        result = await self.session.execute(stmt)
        return [
            ApplicationResultRow(
                application_id=str(application.id),
                session_id=str(admission_session.id),
                session_name=admission_session.name,
                id_card=student.id_card,
                full_name=student.full_name,
                major_code=major.code,
                major_name=major.name,
                admission_method=application.admission_method,
                preference_priority=application.preference_priority,
                calculated_score=application.calculated_score,
                admission_status=AdmissionStatus(application.admission_status),
                rank_in_major=application.rank_in_major,
            )
            for application, student, major, admission_session in result.all()
        ]
