"""
Base Repository for the Video Exchange API

Generic async repository over one SQLModel table. Repositories only flush;
the service that owns the unit of work decides when to commit.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel


ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Shared primary-key access for one table.

    Args:
        model: The SQLModel table class
        session: Request (or script) session
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self._model = model
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        """Row by primary key, from the identity map when already loaded."""
        return await self._session.get(self._model, id)

    async def add(self, obj: ModelType) -> ModelType:
        """
        Stage a new row and flush it.

        Flushing surfaces unique-constraint violations (IntegrityError) to
        the caller before anything is committed.
        """
        self._session.add(obj)
        await self._session.flush()
        await self._session.refresh(obj)
        return obj
