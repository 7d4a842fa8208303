import uuid

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.database import Base


class MessageModel(Base):
    """SQLAlchemy model for messages table."""

    __tablename__ = "messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chat_id = Column(Uuid, ForeignKey("chats.id"), nullable=False)
    sender_id = Column(Uuid, ForeignKey("event_participants.id"), nullable=False)
    seq = Column(Integer, nullable=False)
    text = Column(Text)
    attachments = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    chat = relationship("ChatModel", back_populates="messages")

    # Attachment entries are {"type": "image" | "pdf", "url": str}
    __table_args__ = (UniqueConstraint("chat_id", "seq", name="uq_messages_chat_seq"),)
