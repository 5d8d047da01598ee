"""
Student Model

Candidates of one admission session with their raw subject scores.
"""

from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import Column, JSON, String
from sqlmodel import Field, SQLModel

from admission_filter.infrastructure.db.models.base import BaseModel


class StudentBase(SQLModel):
    """Base schema for students."""

    id_card: str = Field(
        ...,
        max_length=20,
        sa_column=Column(String(20), unique=True, index=True, nullable=False),
        description="Citizen ID card number (CMND/CCCD)"
    )
    full_name: str = Field(..., max_length=255)
    scores: Dict[str, Optional[float]] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Subject code -> score (0-10)"
    )
    priority_points: float = Field(
        default=0.0,
        ge=0.0,
        description="Policy priority bonus (region, merit, ...)"
    )


class Student(StudentBase, BaseModel, table=True):
    """Student table."""

    __tablename__ = "students"

    session_id: UUID = Field(
        ...,
        foreign_key="admission_sessions.id",
        index=True,
    )
