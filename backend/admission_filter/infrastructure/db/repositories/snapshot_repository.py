"""
Filter Snapshot Repository

Reads everything one virtual filter run needs for a session in a single
pass and hands it over as plain domain records.
"""

from dataclasses import dataclass
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_filter.domain.models import (
    ApplicationRecord,
    FormulaRecord,
    SessionQuotaRecord,
    StudentRecord,
)
from admission_filter.infrastructure.db.models import (
    AdmissionFormula,
    Application,
    SessionQuota,
    Student,
)


@dataclass(frozen=True)
class SessionRecords:
    """Raw records of one admission session."""
    students: List[StudentRecord]
    applications: List[ApplicationRecord]
    quotas: List[SessionQuotaRecord]
    formulas: List[FormulaRecord]


class FilterSnapshotRepository:
    """Loads the records a filter run reads."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self, session_id: UUID) -> SessionRecords:
        students = await self._scalars(select(Student).where(Student.session_id == session_id))
        applications = await self._scalars(
            select(Application).where(Application.session_id == session_id)
        )
        quotas = await self._scalars(
            select(SessionQuota).where(SessionQuota.session_id == session_id)
        )

        formula_ids = {q.formula_id for q in quotas if q.formula_id is not None}
        formulas = []
        if formula_ids:
            formulas = await self._scalars(
                select(AdmissionFormula).where(AdmissionFormula.id.in_(formula_ids))
            )

        return SessionRecords(
            students=[
                StudentRecord(
                    id=str(s.id),
                    id_card=s.id_card,
                    full_name=s.full_name,
                    scores=dict(s.scores or {}),
                    priority_points=float(s.priority_points or 0.0),
                )
                for s in students
            ],
            applications=[
                ApplicationRecord(
                    id=str(a.id),
                    student_id=str(a.student_id),
                    major_id=str(a.major_id),
                    admission_method=a.admission_method,
                    preference_priority=a.preference_priority,
                    subject_scores=dict(a.subject_scores) if a.subject_scores else None,
                )
                for a in applications
            ],
            quotas=[
                SessionQuotaRecord(
                    id=str(q.id),
                    major_id=str(q.major_id),
                    admission_method=q.admission_method,
                    quota=q.quota,
                    formula_id=str(q.formula_id) if q.formula_id else None,
                    conditions=q.conditions,
                )
                for q in quotas
            ],
            formulas=[
                FormulaRecord(id=str(f.id), name=f.name, formula=f.formula)
                for f in formulas
            ],
        )

    async def _scalars(self, stmt) -> list:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
