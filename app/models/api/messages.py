from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field

from app.models.api.base import CamelModel
from app.models.api.participants import ParticipantSummary


class Attachment(CamelModel):
    type: Literal["image", "pdf"]
    url: str


class MessageRecord(CamelModel):
    """Stored message, before viewer-specific formatting."""

    id: UUID
    chat_id: UUID
    sender_id: UUID
    seq: int
    text: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)
    created_at: datetime


class ChatMessageResponse(CamelModel):
    """Message as seen by one chat member."""

    id: UUID
    chat_id: UUID
    seq: int
    text: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)
    created_at: datetime
    sender_id: UUID
    is_own_message: bool
    sender: ParticipantSummary


class SendChatMessageRequest(CamelModel):
    """Request model for sending a chat message."""

    message: Optional[str] = Field(default=None, description="Message text")


class MessagePagination(CamelModel):
    has_next_page: bool
    next_cursor: Optional[UUID] = None
    limit: int


class ChatMessagesResponse(CamelModel):
    messages: List[ChatMessageResponse]
    pagination: MessagePagination
