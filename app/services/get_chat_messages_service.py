from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ValidationError
from app.models.api.messages import ChatMessagesResponse, MessagePagination
from app.repositories.chat_repository import ChatRepository
from app.repositories.message_repository import MessageRepository
from app.services.chat_access import get_chat_for_member, parse_id
from app.services.message_formatting import format_message
from app.services.participant_directory import ParticipantDirectory

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50


class GetChatMessagesService:
    """Service for paging backwards through a chat's history."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)
        self.message_repo = MessageRepository(db)
        self.directory = ParticipantDirectory(db)

    async def get_chat_messages(
        self,
        participant_id: UUID,
        chat_id: Optional[str],
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> ChatMessagesResponse:
        """
        Get one page of messages, oldest first within the page:

        1. Validate parameters and chat membership
        2. Resolve the cursor message to its seq
        3. Fetch one extra row to detect a further page
        4. Attach sender identities for this viewer
        """
        # Step 1: Validate parameters
        if limit is None:
            limit = DEFAULT_PAGE_SIZE
        if limit <= 0:
            raise ValidationError("Limit must be a positive number")
        limit = min(limit, MAX_PAGE_SIZE)

        chat = await get_chat_for_member(
            self.chat_repo, parse_id(chat_id, "chatId"), participant_id
        )

        # Step 2: A cursor from another chat is ignored
        before_seq = None
        if cursor:
            cursor_message = await self.message_repo.get_in_chat(
                chat.id, parse_id(cursor, "cursor")
            )
            if cursor_message:
                before_seq = cursor_message.seq

        # Step 3: Newest first, trimmed, then back to chronological order
        rows = await self.message_repo.list_page(
            chat.id, limit=limit + 1, before_seq=before_seq
        )
        has_next_page = len(rows) > limit
        page = list(reversed(rows[:limit]))

        # Step 4: Format for the viewer
        senders = await self.directory.resolve(m.sender_id for m in page)
        messages = [
            format_message(m, participant_id, senders[m.sender_id]) for m in page
        ]

        return ChatMessagesResponse(
            messages=messages,
            pagination=MessagePagination(
                has_next_page=has_next_page,
                next_cursor=page[0].id if has_next_page and page else None,
                limit=limit,
            ),
        )
