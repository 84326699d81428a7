"""
Base repository with the lookups and writes shared by every model.
"""

from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from marketplace.database import Base
from typing import AsyncIterator, TypeVar, Generic, Optional, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository bound to one model class and one session.

    Writes go through ``committing()`` so each one is a single transaction
    that is rolled back if anything inside it fails.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    @asynccontextmanager
    async def committing(self, action: str) -> AsyncIterator[AsyncSession]:
        """Commit on clean exit, roll back and re-raise otherwise."""
        try:
            yield self.db
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        db_obj = self.model(**obj_in)
        async with self.committing(f"create {self.model.__name__}"):
            self.db.add(db_obj)
        await self.db.refresh(db_obj)
        logger.debug("Created %s %s", self.model.__name__, db_obj.id)
        return db_obj

    async def get_by_id(self, id: uuid.UUID, refresh: bool = False) -> Optional[ModelType]:
        """
        Fetch a row by primary key.

        Args:
            id: Primary key
            refresh: Reload columns and eager relationships even when the
                object is already in the session's identity map, e.g. after
                child rows were replaced with Core statements
        """
        query = select(self.model).where(self.model.id == id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        if not hasattr(self.model, field):
            raise ValueError(f"Field '{field}' does not exist on {self.model.__name__}")
        result = await self.db.execute(select(self.model).where(getattr(self.model, field) == value))
        return result.scalar_one_or_none()

    async def update(self, db_obj: ModelType, obj_in: Dict[str, Any]) -> ModelType:
        """Set the given attributes and commit. ``None`` values clear the column."""
        async with self.committing(f"update {self.model.__name__} {db_obj.id}"):
            for field, value in obj_in.items():
                setattr(db_obj, field, value)
        return db_obj
