from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import EventIdentity, get_current_participant
from app.database import get_db
from app.dependencies import get_fanout
from app.models.api.chats import SubmitBidRequest, SubmitBidResponse
from app.models.api.requirements import (
    CreateRequirementRequest,
    RequirementDetailResponse,
    RequirementListResponse,
    RequirementResponse,
)
from app.services.chat_fanout_service import ChatFanoutService
from app.services.requirement_service import RequirementService
from app.services.submit_bid_service import SubmitBidService

router = APIRouter()


@router.post("", response_model=RequirementResponse, status_code=status.HTTP_201_CREATED)
async def create_requirement(
    request: CreateRequirementRequest,
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
) -> RequirementResponse:
    """Post a requirement in the caller's event."""
    service = RequirementService(db)
    return await service.post_requirement(
        identity.participant_id, identity.event_id, request
    )


@router.get("", response_model=RequirementListResponse)
async def list_requirements(
    type: Optional[str] = Query("all", description="'all' or 'postedByMe'"),
    page: Optional[int] = Query(1, description="Page number, starting at 1"),
    limit: Optional[int] = Query(10, description="Page size (max: 50)"),
    search: Optional[str] = Query(
        None, description="Match title, description or poster name"
    ),
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
) -> RequirementListResponse:
    """
    List requirements of the caller's event, newest first.

    Query parameters:
    - type: 'all' (default) or 'postedByMe'
    - page: Page number (default: 1)
    - limit: Requirements per page (default: 10, max: 50)
    - search: Case-insensitive text filter
    """
    service = RequirementService(db)
    return await service.list_requirements(
        identity.participant_id,
        identity.event_id,
        list_type=type,
        page=page,
        limit=limit,
        search=search,
    )


@router.post(
    "/submit-bid",
    response_model=SubmitBidResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_bid(
    request: SubmitBidRequest,
    background_tasks: BackgroundTasks,
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
    fanout: ChatFanoutService = Depends(get_fanout),
) -> SubmitBidResponse:
    """Bid on a requirement, opening a chat with its poster."""
    service = SubmitBidService(db)
    result = await service.submit_bid(
        identity.participant_id, identity.event_id, request
    )
    # Pushes and the poster notification run after the response is sent
    background_tasks.add_task(fanout.bid_submitted, result)
    return result


@router.get("/{requirement_id}", response_model=RequirementDetailResponse)
async def get_requirement(
    requirement_id: str,
    identity: EventIdentity = Depends(get_current_participant),
    db: AsyncSession = Depends(get_db),
) -> RequirementDetailResponse:
    """Requirement detail; the poster also gets every response."""
    service = RequirementService(db)
    return await service.get_requirement(
        identity.participant_id, identity.event_id, requirement_id
    )
