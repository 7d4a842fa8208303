# Repository classes for database operations
from .base_repository import BaseRepository
from .chat_repository import ChatRepository
from .message_repository import MessageRepository
from .participant_repository import ParticipantRepository
from .requirement_repository import RequirementRepository

__all__ = [
    "BaseRepository",
    "ChatRepository",
    "MessageRepository",
    "ParticipantRepository",
    "RequirementRepository",
]
