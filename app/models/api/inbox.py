from datetime import datetime
from typing import List, Optional
from uuid import UUID

from app.models.api.base import CamelModel
from app.models.api.participants import ParticipantSummary


class InboxPagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "InboxPagination":
        total_pages = (total + limit - 1) // limit
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class PostedByMeInboxItem(CamelModel):
    """Latest chat on one of the caller's requirements."""

    chat_id: UUID
    requirement_id: UUID
    title: str
    bidders_count: int
    last_activity: datetime
    unread_count: int
    bidder: ParticipantSummary
    created_at: Optional[datetime] = None


class AllInboxItem(CamelModel):
    """Chat where the caller is the bidder."""

    chat_id: UUID
    requirement_id: UUID
    title: str
    bidders_count: int
    last_activity: datetime
    unread_count: int
    posted_by: ParticipantSummary
    created_at: Optional[datetime] = None


class PostedByMeInboxResponse(CamelModel):
    inbox_items: List[PostedByMeInboxItem]
    pagination: InboxPagination


class AllInboxResponse(CamelModel):
    inbox_items: List[AllInboxItem]
    pagination: InboxPagination


class RequirementChatItem(CamelModel):
    chat_id: UUID
    bidder_id: UUID
    bidder: ParticipantSummary
    last_activity: datetime
    unread_count: int
    created_at: Optional[datetime] = None


class RequirementChatsResponse(CamelModel):
    requirement_id: UUID
    requirement_title: str
    total_chats: int
    chats: List[RequirementChatItem]


class UnreadCountsResponse(CamelModel):
    posted_by_me_unread: int
    all_unread: int
    total_unread: int
