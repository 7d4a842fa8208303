import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InternalError
from app.models.api.chats import ChatResponse
from app.repositories.chat_repository import ChatRepository
from app.services.chat_access import get_chat_for_member, parse_id

logger = logging.getLogger(__name__)


class MarkChatReadService:
    """Service for clearing a member's unread counter."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)

    async def mark_as_read(
        self, participant_id: UUID, chat_id: Optional[str]
    ) -> ChatResponse:
        """Zero the caller's side of the chat and return the updated chat."""
        chat = await get_chat_for_member(
            self.chat_repo, parse_id(chat_id, "chatId"), participant_id
        )

        try:
            await self.chat_repo.reset_unread(chat.id, chat.side_of(participant_id))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to mark chat %s as read", chat.id)
            raise InternalError("Failed to mark messages as read")

        updated_chat = await self.chat_repo.get_by_id(chat.id, refresh=True)
        return updated_chat or chat
