from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from app.models.api.base import CamelModel
from app.models.api.inbox import RequirementChatItem
from app.models.api.participants import ParticipantSummary


class CreateRequirementRequest(CamelModel):
    """Request model for posting a requirement."""

    title: Optional[str] = Field(default=None, description="Short title")
    description: Optional[str] = Field(default=None, description="What is needed")
    budget: Optional[float] = Field(default=None, description="Budget amount")
    currency: Optional[str] = Field(
        default=None, description="ISO-4217 currency code, e.g. INR"
    )
    location_preference: Optional[str] = Field(
        default=None, description="Preferred location, free text"
    )


class RequirementResponse(CamelModel):
    """Response model for requirement data."""

    id: UUID
    event_id: UUID
    posted_by: UUID
    title: str
    description: str
    budget: Optional[float] = None
    currency: Optional[str] = None
    location_preference: Optional[str] = None
    bidders_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RequirementListItem(CamelModel):
    id: UUID
    event_id: UUID
    title: str
    description: str
    budget: Optional[float] = None
    currency: Optional[str] = None
    location_preference: Optional[str] = None
    posted_by: ParticipantSummary
    members_count: int
    bidder_profile_images: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RequirementListPagination(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next_page: bool
    limit: int


class RequirementListResponse(CamelModel):
    requirements: List[RequirementListItem]
    pagination: RequirementListPagination


class RequirementDetailResponse(CamelModel):
    """Requirement detail, shaped by whether the caller posted it."""

    id: UUID
    event_id: UUID
    title: str
    description: str
    budget: Optional[float] = None
    currency: Optional[str] = None
    location_preference: Optional[str] = None
    bidders_count: int
    posted_by: ParticipantSummary
    is_user_posted: bool
    responses: Optional[List[RequirementChatItem]] = None
    my_response: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
