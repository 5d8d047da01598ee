"""
SQLModel ORM Models for the Admission Filter service

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from admission_filter.infrastructure.db.models.base import (
    BaseModel,
    TimestampMixin,
    UUIDMixin,
)
from admission_filter.infrastructure.db.models.admission_session import (
    AdmissionSession,
    Major,
    SessionStatus,
)
from admission_filter.infrastructure.db.models.student import Student
from admission_filter.infrastructure.db.models.quota import (
    AdmissionFormula,
    SessionQuota,
)
from admission_filter.infrastructure.db.models.application import (
    Application,
    AdmissionStatus,
)


__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "UUIDMixin",
    # Sessions
    "AdmissionSession",
    "Major",
    "SessionStatus",
    # Students
    "Student",
    # Quotas
    "AdmissionFormula",
    "SessionQuota",
    # Applications
    "Application",
    "AdmissionStatus",
]
