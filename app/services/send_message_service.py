import logging
from datetime import datetime, timezone
from typing import NamedTuple, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InternalError, ValidationError
from app.models.api.chats import ChatResponse
from app.models.api.messages import ChatMessageResponse
from app.repositories.chat_repository import ChatRepository
from app.repositories.message_repository import MessageRepository
from app.services.chat_access import get_chat_for_member, parse_id
from app.services.message_formatting import format_message
from app.services.participant_directory import ParticipantDirectory

logger = logging.getLogger(__name__)


class SentMessage(NamedTuple):
    message: ChatMessageResponse
    chat: ChatResponse


class SendMessageService:
    """Service for sending a message into an existing chat."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)
        self.message_repo = MessageRepository(db)
        self.directory = ParticipantDirectory(db)

    async def send_message(
        self, participant_id: UUID, chat_id: Optional[str], text: Optional[str]
    ) -> SentMessage:
        """
        Main business logic for sending a message:
        1. Validate text and chat membership
        2. Allocate the seq and update the chat counters
        3. Save the message and commit
        4. Return the sender's view and the updated chat
        """
        # Step 1: Validate before any write
        body = (text or "").strip()
        if not body:
            raise ValidationError("Message text is required")
        chat = await get_chat_for_member(
            self.chat_repo, parse_id(chat_id, "chatId"), participant_id
        )

        # Step 2 and 3: One transaction
        sent_at = datetime.now(timezone.utc)
        recipient = chat.side_of(participant_id).other
        try:
            seq = await self.chat_repo.record_message(chat.id, recipient, sent_at)
            message = await self.message_repo.append(
                chat_id=chat.id,
                sender_id=participant_id,
                seq=seq,
                text=body,
                created_at=sent_at,
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to send message in chat %s", chat.id)
            raise InternalError("Failed to send message")

        # Step 4: Read back counters written in the database
        updated_chat = await self.chat_repo.get_by_id(chat.id, refresh=True)
        sender = await self.directory.resolve_one(participant_id)
        return SentMessage(
            message=format_message(message, participant_id, sender),
            chat=updated_chat or chat,
        )
