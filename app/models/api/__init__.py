# API models for request/response contracts
from .chats import (
    ChatResponse,
    ChatSide,
    MarkReadResponse,
    SubmitBidRequest,
    SubmitBidResponse,
    UnreadCount,
    UnreadCountUpdate,
)
from .inbox import (
    AllInboxItem,
    AllInboxResponse,
    InboxPagination,
    PostedByMeInboxItem,
    PostedByMeInboxResponse,
    RequirementChatItem,
    RequirementChatsResponse,
    UnreadCountsResponse,
)
from .messages import (
    Attachment,
    ChatMessageResponse,
    ChatMessagesResponse,
    MessagePagination,
    MessageRecord,
    SendChatMessageRequest,
)
from .participants import ParticipantResponse, ParticipantSummary
from .requirements import (
    CreateRequirementRequest,
    RequirementDetailResponse,
    RequirementListItem,
    RequirementListPagination,
    RequirementListResponse,
    RequirementResponse,
)

__all__ = [
    # Requirements
    "CreateRequirementRequest",
    "RequirementResponse",
    "RequirementListItem",
    "RequirementListPagination",
    "RequirementListResponse",
    "RequirementDetailResponse",
    # Chats
    "ChatResponse",
    "ChatSide",
    "UnreadCount",
    "UnreadCountUpdate",
    "SubmitBidRequest",
    "SubmitBidResponse",
    "MarkReadResponse",
    # Messages
    "Attachment",
    "MessageRecord",
    "ChatMessageResponse",
    "ChatMessagesResponse",
    "MessagePagination",
    "SendChatMessageRequest",
    # Inbox
    "InboxPagination",
    "PostedByMeInboxItem",
    "PostedByMeInboxResponse",
    "AllInboxItem",
    "AllInboxResponse",
    "RequirementChatItem",
    "RequirementChatsResponse",
    "UnreadCountsResponse",
    # Participants
    "ParticipantResponse",
    "ParticipantSummary",
]
