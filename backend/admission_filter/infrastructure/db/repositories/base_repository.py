"""
Base Repository for the Admission Filter service

Generic async repository implementing the shared read/create operations.
"""

from abc import ABC, abstractmethod
from typing import TypeVar, Generic, List, Optional, Type
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel


# Type variables for generic repository
ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=SQLModel)


class IReadRepository(ABC, Generic[ModelType]):
    """
    Interface for read operations.

    Separates read concerns from write concerns.
    """

    @abstractmethod
    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """Get a single record by ID."""
        pass

    @abstractmethod
    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """Get all records with pagination."""
        pass

    @abstractmethod
    async def exists(self, id: UUID) -> bool:
        """Check if a record exists."""
        pass


class BaseRepository(IReadRepository[ModelType], Generic[ModelType, CreateSchemaType]):
    """
    Generic async repository.

    Args:
        model: The SQLModel class to operate on
        session: Async database session
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self._model = model
        self._session = session

    @property
    def session(self) -> AsyncSession:
        """Get the current session."""
        return self._session

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """
        Get a single record by its primary key.

        Args:
            id: UUID primary key

        Returns:
            Model instance or None if not found
        """
        return await self._session.get(self._model, id)

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """Get all records with pagination."""
        stmt = select(self._model).offset(skip).limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def exists(self, id: UUID) -> bool:
        """Check if a record exists."""
        result = await self.get_by_id(id)
        return result is not None

    async def create(self, data: CreateSchemaType) -> ModelType:
        """
        Create a new record.

        Args:
            data: Create schema with field values

        Returns:
            Created model instance
        """
        db_obj = self._model.model_validate(data)
        self._session.add(db_obj)
        await self._session.flush()
        await self._session.refresh(db_obj)
        return db_obj

    async def count(self) -> int:
        """Get total count of records."""
        stmt = select(func.count()).select_from(self._model)
        result = await self._session.execute(stmt)
        return result.scalar_one()
