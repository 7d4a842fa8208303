from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import EventIdentity, get_current_participant
from app.database import get_db
from app.dependencies import get_fanout
from app.models.api.chats import MarkReadResponse
from app.models.api.messages import (
    ChatMessageResponse,
    ChatMessagesResponse,
    SendChatMessageRequest,
)
from app.services.chat_fanout_service import ChatFanoutService
from app.services.get_chat_messages_service import GetChatMessagesService
from app.services.mark_chat_read_service import MarkChatReadService
from app.services.send_message_service import SendMessageService

router = APIRouter()


@router.post(
    "/chats/{chat_id}/messages",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    chat_id: str,
    request: SendChatMessageRequest,
    background_tasks: BackgroundTasks,
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
    fanout: ChatFanoutService = Depends(get_fanout),
) -> ChatMessageResponse:
    """Send a message in a chat the caller belongs to."""
    service = SendMessageService(db)
    result = await service.send_message(
        identity.participant_id, chat_id, request.message
    )
    # Pushes and notifications run after the response is sent
    background_tasks.add_task(fanout.message_sent, result.chat, result.message)
    return result.message


@router.get("/chats/{chat_id}/messages", response_model=ChatMessagesResponse)
async def get_chat_messages(
    chat_id: str,
    cursor: Optional[str] = Query(
        None, description="Id of the oldest message already loaded"
    ),
    limit: Optional[int] = Query(20, description="Messages per page (max: 50)"),
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
) -> ChatMessagesResponse:
    """
    Page backwards through a chat.

    Query parameters:
    - cursor: Message id; only older messages are returned
    - limit: Messages per page (default: 20, larger values are capped at 50)
    """
    service = GetChatMessagesService(db)
    return await service.get_chat_messages(
        identity.participant_id, chat_id, cursor=cursor, limit=limit
    )


@router.patch("/chats/{chat_id}/mark-read", response_model=MarkReadResponse)
async def mark_chat_read(
    chat_id: str,
    background_tasks: BackgroundTasks,
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
    fanout: ChatFanoutService = Depends(get_fanout),
) -> MarkReadResponse:
    """Clear the caller's unread counter for a chat."""
    service = MarkChatReadService(db)
    chat = await service.mark_as_read(identity.participant_id, chat_id)
    background_tasks.add_task(fanout.chat_read, chat)
    return MarkReadResponse(chat_id=chat.id)
