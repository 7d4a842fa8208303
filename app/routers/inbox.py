from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import EventIdentity, get_current_participant
from app.database import get_db
from app.models.api.inbox import (
    AllInboxResponse,
    PostedByMeInboxResponse,
    RequirementChatsResponse,
    UnreadCountsResponse,
)
from app.services.inbox_service import InboxService

router = APIRouter()


@router.get("/inbox/posted-by-me", response_model=PostedByMeInboxResponse)
async def posted_by_me_inbox(
    page: Optional[int] = Query(1, description="Page number, starting at 1"),
    limit: Optional[int] = Query(10, description="Rows per page (max: 50)"),
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
) -> PostedByMeInboxResponse:
    """Latest chat on each of the caller's requirements."""
    service = InboxService(db)
    return await service.posted_by_me(identity.participant_id, page, limit)


@router.get("/inbox/all", response_model=AllInboxResponse)
async def all_inbox(
    page: Optional[int] = Query(1, description="Page number, starting at 1"),
    limit: Optional[int] = Query(10, description="Rows per page (max: 50)"),
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
) -> AllInboxResponse:
    """Chats the caller opened as a bidder."""
    service = InboxService(db)
    return await service.all_chats(identity.participant_id, page, limit)


@router.get("/inbox/unread-counts", response_model=UnreadCountsResponse)
async def unread_counts(
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
) -> UnreadCountsResponse:
    service = InboxService(db)
    return await service.unread_counts(identity.participant_id)


@router.get("/{requirement_id}/chats", response_model=RequirementChatsResponse)
async def requirement_chats(
    requirement_id: str,
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
) -> RequirementChatsResponse:
    """All chats on one of the caller's requirements."""
    service = InboxService(db)
    return await service.requirement_chats(identity.participant_id, requirement_id)
