from datetime import datetime
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID

from pydantic import Field

from app.models.api.base import CamelModel
from app.models.api.messages import ChatMessageResponse


class ChatSide(str, Enum):
    """Which member of a chat an unread counter belongs to."""

    POSTED_BY = "posted_by"
    BIDDER = "bidder"

    @property
    def other(self) -> "ChatSide":
        return ChatSide.BIDDER if self is ChatSide.POSTED_BY else ChatSide.POSTED_BY


class UnreadCount(CamelModel):
    posted_by: int = 0
    bidder: int = 0


class ChatResponse(CamelModel):
    """Response model for chat data."""

    id: UUID
    requirement_id: UUID
    posted_by: UUID
    bidder_id: UUID
    last_activity: datetime
    unread_count: UnreadCount
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def members(self) -> Tuple[UUID, UUID]:
        return (self.posted_by, self.bidder_id)

    def is_member(self, participant_id: UUID) -> bool:
        return participant_id in self.members

    def side_of(self, participant_id: UUID) -> ChatSide:
        """Side of a member; callers check membership first."""
        if participant_id == self.posted_by:
            return ChatSide.POSTED_BY
        return ChatSide.BIDDER


class UnreadCountUpdate(CamelModel):
    """Payload of the unread-count-updated push."""

    chat_id: UUID
    posted_by_count: int
    bidder_count: int

    @classmethod
    def from_chat(cls, chat: ChatResponse) -> "UnreadCountUpdate":
        return cls(
            chat_id=chat.id,
            posted_by_count=chat.unread_count.posted_by,
            bidder_count=chat.unread_count.bidder,
        )


class SubmitBidRequest(CamelModel):
    """Request model for bidding on a requirement."""

    requirement_id: Optional[str] = Field(
        default=None, description="Requirement being bid on"
    )
    message: Optional[str] = Field(default=None, description="Opening message")


class SubmitBidResponse(CamelModel):
    chat: ChatResponse
    first_message: ChatMessageResponse


class MarkReadResponse(CamelModel):
    chat_id: UUID
    message: str = "Messages marked as read"
