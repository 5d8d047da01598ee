"""
Dependency Injection Providers for the Admission Filter service

Provides FastAPI dependencies for database sessions and repositories.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from admission_filter.infrastructure.db.database import get_session
from admission_filter.infrastructure.db.repositories import (
    AdmissionSessionRepository,
    ApplicationRepository,
)


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_admission_session_repository(
    session: SessionDep,
) -> AsyncGenerator[AdmissionSessionRepository, None]:
    """Dependency provider for AdmissionSessionRepository."""
    yield AdmissionSessionRepository(session)


async def get_application_repository(
    session: SessionDep,
) -> AsyncGenerator[ApplicationRepository, None]:
    """
    Dependency provider for ApplicationRepository.

    Usage:
        @router.get("/sessions/{session_id}/results")
        async def results(repo: ApplicationRepoDep):
            ...
    """
    yield ApplicationRepository(session)


# Type aliases for repository dependencies
AdmissionSessionRepoDep = Annotated[
    AdmissionSessionRepository,
    Depends(get_admission_session_repository)
]
ApplicationRepoDep = Annotated[
    ApplicationRepository,
    Depends(get_application_repository)
]
