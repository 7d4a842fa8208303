# SQLAlchemy database models
from .chat_model import ChatModel
from .message_model import MessageModel
from .participant_model import ParticipantModel
from .requirement_model import RequirementModel

__all__ = ["ChatModel", "MessageModel", "ParticipantModel", "RequirementModel"]
