from typing import Dict, Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.api.participants import ParticipantSummary
from app.repositories.participant_repository import ParticipantRepository

UNKNOWN_PARTICIPANT_NAME = "Unknown User"


class ParticipantDirectory:
    """Resolves participant ids to display identities."""

    def __init__(self, db: AsyncSession):
        self.participant_repo = ParticipantRepository(db)

    async def resolve(
        self, participant_ids: Iterable[UUID]
    ) -> Dict[UUID, ParticipantSummary]:
        """Resolve every id, falling back to a placeholder for unknown ones."""
        ids = set(participant_ids)
        found = await self.participant_repo.get_many(ids)
        return {
            participant_id: (
                ParticipantSummary(
                    id=participant_id,
                    name=found[participant_id].name,
                    profile_image=found[participant_id].profile_image,
                )
                if participant_id in found
                else ParticipantSummary(
                    id=participant_id, name=UNKNOWN_PARTICIPANT_NAME
                )
            )
            for participant_id in ids
        }

    async def resolve_one(self, participant_id: UUID) -> ParticipantSummary:
        return (await self.resolve([participant_id]))[participant_id]
