"""
Repository Layer for the Admission Filter service

Exports all repository classes for dependency injection.
"""

from admission_filter.infrastructure.db.repositories.base_repository import (
    BaseRepository,
    IReadRepository,
)
from admission_filter.infrastructure.db.repositories.admission_session_repository import (
    AdmissionSessionRepository,
)
from admission_filter.infrastructure.db.repositories.snapshot_repository import (
    FilterSnapshotRepository,
    SessionRecords,
)
from admission_filter.infrastructure.db.repositories.application_repository import (
    ApplicationRepository,
    ApplicationResultRow,
)


__all__ = [
    # Base
    "BaseRepository",
    "IReadRepository",
    # Repositories
    "AdmissionSessionRepository",
    "FilterSnapshotRepository",
    "SessionRecords",
    "ApplicationRepository",
    "ApplicationResultRow",
]
