"""
Admission Session and Major Models

An admission session (đợt tuyển sinh) scopes students, quotas and
applications; majors are shared across sessions.
"""

from enum import Enum

from sqlalchemy import Column, String
from sqlmodel import Field, SQLModel

from admission_filter.infrastructure.db.models.base import BaseModel


class SessionStatus(str, Enum):
    """Lifecycle of an admission session."""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    CLOSED = "closed"


class AdmissionSessionBase(SQLModel):
    """Base schema for admission sessions."""

    name: str = Field(..., max_length=255, description="Session display name")
    year: int = Field(..., ge=2000, le=2100, description="Admission year")
    status: SessionStatus = Field(
        default=SessionStatus.UPCOMING,
        sa_column=Column(String(20), nullable=False, server_default="upcoming"),
    )


class AdmissionSession(AdmissionSessionBase, BaseModel, table=True):
    """Admission session table."""

    __tablename__ = "admission_sessions"


class MajorBase(SQLModel):
    """Base schema for majors."""

    code: str = Field(
        ...,
        max_length=20,
        sa_column=Column(String(20), unique=True, index=True, nullable=False),
        description="Major code, e.g. CNTT"
    )
    name: str = Field(..., max_length=255, description="Major display name")


class Major(MajorBase, BaseModel, table=True):
    """Major (ngành) table."""

    __tablename__ = "majors"
