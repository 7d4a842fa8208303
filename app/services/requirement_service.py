import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InternalError, NotFoundError, ValidationError
from app.models.api.requirements import (
    CreateRequirementRequest,
    RequirementDetailResponse,
    RequirementListItem,
    RequirementListPagination,
    RequirementListResponse,
    RequirementResponse,
)
from app.repositories.chat_repository import ChatRepository
from app.repositories.requirement_repository import RequirementRepository
from app.services.chat_access import parse_id
from app.services.inbox_service import build_requirement_chat_items
from app.services.participant_directory import ParticipantDirectory

logger = logging.getLogger(__name__)

LIST_TYPES = ("all", "postedByMe")
DEFAULT_LIST_LIMIT = 10
MAX_LIST_LIMIT = 50
BIDDER_IMAGES_PER_REQUIREMENT = 3


def _required_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


class RequirementService:
    """Service for posting and browsing an event's requirements."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.requirement_repo = RequirementRepository(db)
        self.chat_repo = ChatRepository(db)
        self.directory = ParticipantDirectory(db)

    async def post_requirement(
        self,
        participant_id: UUID,
        event_id: UUID,
        request: CreateRequirementRequest,
    ) -> RequirementResponse:
        """
        Validate and store a new requirement:

        1. Trim and require title and description
        2. Check budget and currency
        3. Insert with a zero bidders count
        """
        title = _required_text(request.title, "Title")
        description = _required_text(request.description, "Description")

        if request.budget is not None and request.budget < 0:
            raise ValidationError("Budget must be a non-negative number")

        currency = None
        if request.currency is not None and request.currency.strip():
            currency = request.currency.strip().upper()
            if len(currency) != 3 or not currency.isalpha():
                raise ValidationError("Currency must be a three-letter code")

        location = (request.location_preference or "").strip() or None

        try:
            requirement = await self.requirement_repo.create(
                event_id=event_id,
                posted_by=participant_id,
                title=title,
                description=description,
                budget=request.budget,
                currency=currency,
                location_preference=location,
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to create requirement")
            raise InternalError("Failed to create requirement")

        logger.info(
            "Requirement %s posted by %s in event %s",
            requirement.id,
            participant_id,
            event_id,
        )
        return requirement

    async def list_requirements(
        self,
        participant_id: UUID,
        event_id: UUID,
        list_type: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> RequirementListResponse:
        """List the event's requirements, newest first."""
        list_type = list_type or "all"
        page = 1 if page is None else page
        limit = DEFAULT_LIST_LIMIT if limit is None else limit

        if list_type not in LIST_TYPES:
            raise ValidationError("Type must be 'all' or 'postedByMe'")
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if limit < 1 or limit > MAX_LIST_LIMIT:
            raise ValidationError(f"Limit must be between 1 and {MAX_LIST_LIMIT}")

        requirements, total = await self.requirement_repo.list_for_event(
            event_id,
            limit=limit,
            offset=(page - 1) * limit,
            posted_by=participant_id if list_type == "postedByMe" else None,
            search=(search or "").strip() or None,
        )

        requirement_ids = [r.id for r in requirements]
        members = await self.chat_repo.count_by_requirements(requirement_ids)
        first_bidders = await self.chat_repo.first_bidders_by_requirements(
            requirement_ids, per_requirement=BIDDER_IMAGES_PER_REQUIREMENT
        )
        people = await self.directory.resolve(
            [r.posted_by for r in requirements]
            + [b for bidders in first_bidders.values() for b in bidders]
        )

        items = []
        for requirement in requirements:
            images = [
                people[bidder_id].profile_image
                for bidder_id in first_bidders.get(requirement.id, [])
                if people[bidder_id].profile_image
            ]
            items.append(
                RequirementListItem(
                    id=requirement.id,
                    event_id=requirement.event_id,
                    title=requirement.title,
                    description=requirement.description,
                    budget=requirement.budget,
                    currency=requirement.currency,
                    location_preference=requirement.location_preference,
                    posted_by=people[requirement.posted_by],
                    members_count=members.get(requirement.id, 0),
                    bidder_profile_images=images,
                    created_at=requirement.created_at,
                    updated_at=requirement.updated_at,
                )
            )

        total_pages = (total + limit - 1) // limit
        return RequirementListResponse(
            requirements=items,
            pagination=RequirementListPagination(
                current_page=page,
                total_pages=total_pages,
                total_count=total,
                has_next_page=page < total_pages,
                limit=limit,
            ),
        )

    async def get_requirement(
        self,
        participant_id: UUID,
        event_id: UUID,
        requirement_id: Optional[str],
    ) -> RequirementDetailResponse:
        """Requirement detail; the poster also sees every response."""
        requirement = await self.requirement_repo.get_by_id(
            parse_id(requirement_id, "requirementId")
        )
        if not requirement or requirement.event_id != event_id:
            raise NotFoundError("Requirement not found")

        is_user_posted = requirement.posted_by == participant_id
        responses = None
        my_response = None
        if is_user_posted:
            chats = await self.chat_repo.list_by_requirement(requirement.id)
            responses = await build_requirement_chat_items(chats, self.directory)
        else:
            chat = await self.chat_repo.get_by_requirement_and_bidder(
                requirement.id, participant_id
            )
            my_response = chat.id if chat else None

        return RequirementDetailResponse(
            id=requirement.id,
            event_id=requirement.event_id,
            title=requirement.title,
            description=requirement.description,
            budget=requirement.budget,
            currency=requirement.currency,
            location_preference=requirement.location_preference,
            bidders_count=requirement.bidders_count,
            posted_by=await self.directory.resolve_one(requirement.posted_by),
            is_user_posted=is_user_posted,
            responses=responses,
            my_response=my_response,
            created_at=requirement.created_at,
            updated_at=requirement.updated_at,
        )
