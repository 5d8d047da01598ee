"""
Admission Session Repository
"""

from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from admission_filter.infrastructure.db.models import AdmissionSession
from admission_filter.infrastructure.db.models.admission_session import AdmissionSessionBase
from admission_filter.infrastructure.db.repositories.base_repository import BaseRepository
from admission_filter.infrastructure.exceptions import NotFoundError


class AdmissionSessionRepository(BaseRepository[AdmissionSession, AdmissionSessionBase]):
    """Repository for admission sessions."""

    def __init__(self, session: AsyncSession):
        super().__init__(AdmissionSession, session)

    async def get_or_raise(self, session_id: UUID) -> AdmissionSession:
        """Get a session or raise NotFoundError."""
        admission_session = await self.get_by_id(session_id)
        if admission_session is None:
            raise NotFoundError(
                f"Admission session {session_id} not found",
                operation="get",
                table="admission_sessions",
            )
        return admission_session
