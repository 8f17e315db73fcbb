"""Base repository: generic get/create/delete plus bulk-statement helpers."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with get_by_id, create, delete and execute_rowcount.

    Subclasses expose interface methods returning application DTOs and keep
    ORM instances internal.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_by_id(self, entity_id: str) -> ModelType | None:
        """Return a single record by primary key, or None.

        populate_existing refreshes instances already in the identity map, which
        bulk UPDATE statements (synchronize_session=False) leave stale.
        """
        model: Any = self.model
        result = await self.db.execute(
            select(self.model)
            .where(model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record and load server defaults."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        """Delete the record."""
        await self.db.delete(obj)
        await self.db.flush()

    async def execute_rowcount(self, stmt: Any) -> int:
        """Execute a bulk UPDATE/DELETE without touching the identity map; return rows affected."""
        result: Any = await self.db.execute(
            stmt.execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)
