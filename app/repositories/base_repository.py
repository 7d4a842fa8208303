from typing import Any, Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.database import Base

ModelType = TypeVar("ModelType", bound=Base)
PydanticType = TypeVar("PydanticType", bound=BaseModel)


class BaseRepository(Generic[ModelType, PydanticType]):
    """Generic base repository with common read/write operations.

    Writes are flushed, not committed: services own the transaction so that a
    multi-record mutation commits or rolls back as one unit.
    """

    def __init__(self, db: AsyncSession, model_class: Any):
        self.db = db
        self.model_class = model_class

    async def get_by_id(
        self, id: UUID, *, refresh: bool = False
    ) -> Optional[PydanticType]:
        """Get a single record by ID.

        ``refresh`` bypasses the session identity map so that values changed by
        in-database updates are read back.
        """
        query = select(self.model_class).where(self.model_class.id == id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def add(self, db_model: ModelType) -> PydanticType:
        """Stage a new record and flush it so generated values are available."""
        self.db.add(db_model)
        await self.db.flush()
        await self.db.refresh(db_model)
        return self._to_pydantic(db_model)

    def _to_pydantic(self, db_model: ModelType) -> PydanticType:
        """Convert SQLAlchemy model to Pydantic model.

        This should be overridden in subclasses for specific conversion logic.
        """
        raise NotImplementedError
