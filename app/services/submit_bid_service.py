import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AuthorizationError,
    ConflictError,
    InternalError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from app.models.api.chats import SubmitBidRequest, SubmitBidResponse
from app.repositories.chat_repository import ChatRepository
from app.repositories.message_repository import MessageRepository
from app.repositories.requirement_repository import RequirementRepository
from app.services.chat_access import parse_id
from app.services.message_formatting import format_message
from app.services.participant_directory import ParticipantDirectory

logger = logging.getLogger(__name__)


class SubmitBidService:
    """Service for bidding on a requirement, which opens the bidder's chat."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.requirement_repo = RequirementRepository(db)
        self.chat_repo = ChatRepository(db)
        self.message_repo = MessageRepository(db)
        self.directory = ParticipantDirectory(db)

    async def submit_bid(
        self, participant_id: UUID, event_id: UUID, request: SubmitBidRequest
    ) -> SubmitBidResponse:
        """
        Open a chat on a requirement with the bidder's first message:

        1. Validate input, then check the requirement and the caller
        2. Create the chat, the opening message and bump the bidders count
        3. Commit all three together
        """
        # Step 1: Preconditions, in order, before any write
        text = (request.message or "").strip()
        if not request.requirement_id or not text:
            raise ValidationError("Requirement ID and message are required")
        requirement_id = parse_id(request.requirement_id, "requirementId")

        requirement = await self.requirement_repo.get_by_id(requirement_id)
        if not requirement:
            raise NotFoundError("Requirement not found")
        if requirement.event_id != event_id:
            raise AuthorizationError("Requirement belongs to another event")
        if requirement.posted_by == participant_id:
            raise InvalidOperationError("Cannot bid on your own requirement")

        existing = await self.chat_repo.get_by_requirement_and_bidder(
            requirement_id, participant_id
        )
        if existing:
            raise ConflictError("You have already bid on this requirement")

        # Step 2: Chat, opening message and counter in one transaction
        opened_at = datetime.now(timezone.utc)
        try:
            chat = await self.chat_repo.create_for_bid(
                requirement_id=requirement_id,
                posted_by=requirement.posted_by,
                bidder_id=participant_id,
                opened_at=opened_at,
            )
            message = await self.message_repo.append(
                chat_id=chat.id,
                sender_id=participant_id,
                seq=1,
                text=text,
                created_at=opened_at,
            )
            await self.requirement_repo.increment_bidders_count(requirement_id)

            # Step 3: Commit
            await self.db.commit()
        except IntegrityError:
            # Another request opened the same chat first
            await self.db.rollback()
            raise ConflictError("You have already bid on this requirement")
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to submit bid on requirement %s", requirement_id)
            raise InternalError("Failed to submit bid")

        logger.info(
            "Participant %s bid on requirement %s (chat %s)",
            participant_id,
            requirement_id,
            chat.id,
        )
        sender = await self.directory.resolve_one(participant_id)
        return SubmitBidResponse(
            chat=chat,
            first_message=format_message(message, participant_id, sender),
        )
