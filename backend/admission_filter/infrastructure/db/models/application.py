"""
Application Model

One preference (nguyện vọng) of a student. The filter run owns the
calculated_score, admission_status and rank_in_major columns.
"""

from enum import Enum
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import Column, JSON, String
from sqlmodel import Field, SQLModel

from admission_filter.infrastructure.db.models.base import BaseModel


class AdmissionStatus(str, Enum):
    """Stored admission status of an application."""
    PENDING = "pending"
    ADMITTED = "admitted"
    NOT_ADMITTED = "not_admitted"


class ApplicationBase(SQLModel):
    """Base schema for applications."""

    admission_method: str = Field(..., max_length=50)
    preference_priority: int = Field(..., ge=1, description="1 = most preferred")
    subject_scores: Optional[Dict[str, Optional[float]]] = Field(
        default=None,
        sa_column=Column(JSON),
        description="Scores submitted for this admission method"
    )


class Application(ApplicationBase, BaseModel, table=True):
    """Application table."""

    __tablename__ = "applications"

    student_id: UUID = Field(..., foreign_key="students.id", index=True)
    session_id: UUID = Field(..., foreign_key="admission_sessions.id", index=True)
    major_id: UUID = Field(..., foreign_key="majors.id", index=True)

    calculated_score: Optional[float] = Field(default=None)
    admission_status: AdmissionStatus = Field(
        default=AdmissionStatus.PENDING,
        sa_column=Column(String(20), nullable=False, server_default="pending"),
    )
    rank_in_major: Optional[int] = Field(default=None)
