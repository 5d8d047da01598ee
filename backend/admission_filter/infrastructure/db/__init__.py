"""
Database Infrastructure Package for the Admission Filter service

Exports database utilities, models, and repositories.
"""

from admission_filter.infrastructure.db.database import (
    DatabaseManager,
    get_db_manager,
    get_session,
    get_session_context,
    init_db,
    close_db,
)

from admission_filter.infrastructure.db.dependencies import (
    SessionDep,
    get_admission_session_repository,
    get_application_repository,
    AdmissionSessionRepoDep,
    ApplicationRepoDep,
)


__all__ = [
    # Database management
    "DatabaseManager",
    "get_db_manager",
    "get_session",
    "get_session_context",
    "init_db",
    "close_db",
    # Dependencies
    "SessionDep",
    "get_admission_session_repository",
    "get_application_repository",
    "AdmissionSessionRepoDep",
    "ApplicationRepoDep",
]
