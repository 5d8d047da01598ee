"""
Session Quota and Admission Formula Models

Quota conditions are stored as JSON and parsed into typed Conditions when a
filter snapshot is built.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import Column, JSON, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from admission_filter.infrastructure.db.models.base import BaseModel


class AdmissionFormulaBase(SQLModel):
    """Base schema for scoring formulas."""

    name: str = Field(..., max_length=255)
    formula: str = Field(
        ...,
        sa_column=Column(Text, nullable=False),
        description="Expression over subject codes, priorityPoints and maxBonus"
    )
    description: Optional[str] = Field(default=None)


class AdmissionFormula(AdmissionFormulaBase, BaseModel, table=True):
    """Admission formula table."""

    __tablename__ = "admission_formulas"


class SessionQuotaBase(SQLModel):
    """Base schema for session quotas."""

    admission_method: str = Field(..., max_length=50, description="Method or block code")
    quota: int = Field(..., ge=1, description="Number of seats")
    conditions: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON),
        description="minTotalScore, minSubjectScores, requiredSubjects, subjectCombinations, priorityBonus"
    )


class SessionQuota(SessionQuotaBase, BaseModel, table=True):
    """Seat quota for one (major, admission method) in a session."""

    __tablename__ = "session_quotas"
    __table_args__ = (
        UniqueConstraint("session_id", "major_id", "admission_method", name="uq_session_major_method"),
    )

    session_id: UUID = Field(..., foreign_key="admission_sessions.id", index=True)
    major_id: UUID = Field(..., foreign_key="majors.id", index=True)
    formula_id: Optional[UUID] = Field(default=None, foreign_key="admission_formulas.id")
