from typing import Any, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.api.requirements import RequirementResponse
from app.models.db.participant_model import ParticipantModel
from app.models.db.requirement_model import RequirementModel
from app.repositories.base_repository import BaseRepository


class RequirementRepository(BaseRepository[RequirementModel, RequirementResponse]):
    """Repository for requirement operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RequirementModel)

    async def create(
        self,
        event_id: UUID,
        posted_by: UUID,
        title: str,
        description: str,
        budget: Optional[float] = None,
        currency: Optional[str] = None,
        location_preference: Optional[str] = None,
    ) -> RequirementResponse:
        """Stage a new requirement with no bidders."""
        return await self.add(
            RequirementModel(
                event_id=event_id,
                posted_by=posted_by,
                title=title,
                description=description,
                budget=budget,
                currency=currency,
                location_preference=location_preference,
                bidders_count=0,
            )
        )

    async def get_owned(
        self, requirement_id: UUID, posted_by: UUID
    ) -> Optional[RequirementResponse]:
        """Get a requirement only if it was posted by the given participant."""
        query = select(self.model_class).where(
            self.model_class.id == requirement_id,
            self.model_class.posted_by == posted_by,
        )
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def increment_bidders_count(self, requirement_id: UUID) -> None:
        """Add one bidder as an in-database delta."""
        await self.db.execute(
            update(self.model_class)
            .where(self.model_class.id == requirement_id)
            .values(bidders_count=self.model_class.bidders_count + 1)
            .execution_options(synchronize_session=False)
        )

    async def list_for_event(
        self,
        event_id: UUID,
        limit: int,
        offset: int,
        posted_by: Optional[UUID] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[RequirementResponse], int]:
        """List an event's requirements, newest first, with the total count."""
        filters: List[Any] = [self.model_class.event_id == event_id]

        # Filter by poster if provided
        if posted_by is not None:
            filters.append(self.model_class.posted_by == posted_by)

        # Match title, description or the poster's name
        if search:
            matching_posters = select(ParticipantModel.id).where(
                ParticipantModel.name.icontains(search, autoescape=True)
            )
            filters.append(
                or_(
                    self.model_class.title.icontains(search, autoescape=True),
                    self.model_class.description.icontains(search, autoescape=True),
                    self.model_class.posted_by.in_(matching_posters),
                )
            )

        query = (
            select(self.model_class)
            .where(*filters)
            .order_by(self.model_class.created_at.desc(), self.model_class.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        requirements = [self._to_pydantic(m) for m in result.scalars().all()]

        count_query = (
            select(func.count()).select_from(self.model_class).where(*filters)
        )
        total = (await self.db.execute(count_query)).scalar_one()

        return requirements, total

    def _to_pydantic(self, db_model: Any) -> RequirementResponse:
        """Convert SQLAlchemy RequirementModel to Pydantic RequirementResponse."""
        return RequirementResponse(
            id=db_model.id,
            event_id=db_model.event_id,
            posted_by=db_model.posted_by,
            title=db_model.title,
            description=db_model.description,
            budget=db_model.budget,
            currency=db_model.currency,
            location_preference=db_model.location_preference,
            bidders_count=db_model.bidders_count or 0,
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )
