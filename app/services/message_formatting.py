from uuid import UUID

from app.models.api.messages import ChatMessageResponse, MessageRecord
from app.models.api.participants import ParticipantSummary


def format_message(
    message: MessageRecord, viewer_id: UUID, sender: ParticipantSummary
) -> ChatMessageResponse:
    """Shape a stored message for one chat member."""
    return ChatMessageResponse(
        id=message.id,
        chat_id=message.chat_id,
        seq=message.seq,
        text=message.text,
        attachments=message.attachments,
        created_at=message.created_at,
        sender_id=message.sender_id,
        is_own_message=message.sender_id == viewer_id,
        sender=sender,
    )
