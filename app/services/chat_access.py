from typing import Optional
from uuid import UUID

from app.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.api.chats import ChatResponse
from app.repositories.chat_repository import ChatRepository


def parse_id(value: Optional[str], field: str) -> UUID:
    """Parse a client supplied id, rejecting missing or malformed values."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid {field}")


async def get_chat_for_member(
    chat_repo: ChatRepository,
    chat_id: UUID,
    participant_id: UUID,
    *,
    refresh: bool = False,
) -> ChatResponse:
    """Load a chat and check the participant is one of its two members."""
    chat = await chat_repo.get_by_id(chat_id, refresh=refresh)
    if not chat:
        raise NotFoundError("Chat not found")
    if not chat.is_member(participant_id):
        raise AuthorizationError("You are not a member of this chat")
    return chat
