from typing import Any, Dict, Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.api.participants import ParticipantResponse
from app.models.db.participant_model import ParticipantModel
from app.repositories.base_repository import BaseRepository


class ParticipantRepository(BaseRepository[ParticipantModel, ParticipantResponse]):
    """Read access to the event participant directory."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ParticipantModel)

    async def get_many(
        self, participant_ids: Iterable[UUID]
    ) -> Dict[UUID, ParticipantResponse]:
        """Look up several participants at once, keyed by id."""
        ids = set(participant_ids)
        if not ids:
            return {}
        query = select(self.model_class).where(self.model_class.id.in_(ids))
        result = await self.db.execute(query)
        return {
            db_model.id: self._to_pydantic(db_model)
            for db_model in result.scalars().all()
        }

    def _to_pydantic(self, db_model: Any) -> ParticipantResponse:
        """Convert SQLAlchemy ParticipantModel to Pydantic ParticipantResponse."""
        return ParticipantResponse(
            id=db_model.id,
            event_id=db_model.event_id,
            name=db_model.name,
            profile_image=db_model.profile_image,
            position=db_model.position,
            created_at=db_model.created_at,
        )
