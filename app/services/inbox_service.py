from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, ValidationError
from app.models.api.chats import ChatResponse
from app.models.api.inbox import (
    AllInboxItem,
    AllInboxResponse,
    InboxPagination,
    PostedByMeInboxItem,
    PostedByMeInboxResponse,
    RequirementChatItem,
    RequirementChatsResponse,
    UnreadCountsResponse,
)
from app.repositories.chat_repository import ChatRepository
from app.repositories.requirement_repository import RequirementRepository
from app.services.chat_access import parse_id
from app.services.participant_directory import ParticipantDirectory

DEFAULT_PAGE = 1
DEFAULT_INBOX_LIMIT = 10
MAX_INBOX_LIMIT = 50


def _check_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    page = DEFAULT_PAGE if page is None else page
    limit = DEFAULT_INBOX_LIMIT if limit is None else limit
    if page < 1:
        raise ValidationError("Page must be at least 1")
    if limit < 1 or limit > MAX_INBOX_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_INBOX_LIMIT}")
    return page, limit


async def build_requirement_chat_items(
    chats: List[ChatResponse], directory: ParticipantDirectory
) -> List[RequirementChatItem]:
    """Poster's view of the chats on one requirement."""
    bidders = await directory.resolve(chat.bidder_id for chat in chats)
    return [
        RequirementChatItem(
            chat_id=chat.id,
            bidder_id=chat.bidder_id,
            bidder=bidders[chat.bidder_id],
            last_activity=chat.last_activity,
            unread_count=chat.unread_count.posted_by,
            created_at=chat.created_at,
        )
        for chat in chats
    ]


class InboxService:
    """Aggregated chat views for one participant."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)
        self.requirement_repo = RequirementRepository(db)
        self.directory = ParticipantDirectory(db)

    async def posted_by_me(
        self,
        participant_id: UUID,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> PostedByMeInboxResponse:
        """Latest chat per requirement the participant posted."""
        page, limit = _check_page(page, limit)

        rows = await self.chat_repo.latest_per_requirement_for_poster(
            participant_id, limit=limit, offset=(page - 1) * limit
        )
        total = await self.chat_repo.count_requirements_with_chats(participant_id)
        bidders = await self.directory.resolve(chat.bidder_id for chat, _, _ in rows)

        items = [
            PostedByMeInboxItem(
                chat_id=chat.id,
                requirement_id=chat.requirement_id,
                title=title,
                bidders_count=bidders_count,
                last_activity=chat.last_activity,
                unread_count=chat.unread_count.posted_by,
                bidder=bidders[chat.bidder_id],
                created_at=chat.created_at,
            )
            for chat, title, bidders_count in rows
        ]
        return PostedByMeInboxResponse(
            inbox_items=items,
            pagination=InboxPagination.build(page, limit, total),
        )

    async def all_chats(
        self,
        participant_id: UUID,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> AllInboxResponse:
        """Chats the participant opened by bidding."""
        page, limit = _check_page(page, limit)

        rows = await self.chat_repo.list_for_bidder(
            participant_id, limit=limit, offset=(page - 1) * limit
        )
        total = await self.chat_repo.count_for_bidder(participant_id)
        posters = await self.directory.resolve(chat.posted_by for chat, _, _ in rows)

        items = [
            AllInboxItem(
                chat_id=chat.id,
                requirement_id=chat.requirement_id,
                title=title,
                bidders_count=bidders_count,
                last_activity=chat.last_activity,
                unread_count=chat.unread_count.bidder,
                posted_by=posters[chat.posted_by],
                created_at=chat.created_at,
            )
            for chat, title, bidders_count in rows
        ]
        return AllInboxResponse(
            inbox_items=items,
            pagination=InboxPagination.build(page, limit, total),
        )

    async def requirement_chats(
        self, participant_id: UUID, requirement_id: Optional[str]
    ) -> RequirementChatsResponse:
        """Every chat on a requirement the participant posted."""
        requirement = await self.requirement_repo.get_owned(
            parse_id(requirement_id, "requirementId"), participant_id
        )
        if not requirement:
            raise NotFoundError("Requirement not found or you are not the poster")

        chats = await self.chat_repo.list_by_requirement(requirement.id)
        items = await build_requirement_chat_items(chats, self.directory)
        return RequirementChatsResponse(
            requirement_id=requirement.id,
            requirement_title=requirement.title,
            total_chats=len(items),
            chats=items,
        )

    async def unread_counts(self, participant_id: UUID) -> UnreadCountsResponse:
        posted_by_me, as_bidder = await self.chat_repo.unread_totals(participant_id)
        return UnreadCountsResponse(
            posted_by_me_unread=posted_by_me,
            all_unread=as_bidder,
            total_unread=posted_by_me + as_bidder,
        )
