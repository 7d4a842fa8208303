# Export all models
from .api import (
    ChatMessageResponse,
    ChatResponse,
    MessageRecord,
    ParticipantResponse,
    ParticipantSummary,
    RequirementResponse,
)
from .db import (
    ChatModel,
    MessageModel,
    ParticipantModel,
    RequirementModel,
)

__all__ = [
    # API models
    "RequirementResponse",
    "ChatResponse",
    "MessageRecord",
    "ChatMessageResponse",
    "ParticipantResponse",
    "ParticipantSummary",
    # DB models
    "RequirementModel",
    "ChatModel",
    "MessageModel",
    "ParticipantModel",
]
