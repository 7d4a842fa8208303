from datetime import datetime
from typing import Optional
from uuid import UUID

from app.models.api.base import CamelModel


class ParticipantResponse(CamelModel):
    """Event participant as stored by the directory."""

    id: UUID
    event_id: UUID
    name: str
    profile_image: Optional[str] = None
    position: Optional[str] = None
    created_at: Optional[datetime] = None


class ParticipantSummary(CamelModel):
    """Display identity attached to messages and inbox rows."""

    id: UUID
    name: str
    profile_image: Optional[str] = None
