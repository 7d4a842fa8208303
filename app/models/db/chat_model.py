import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.database import Base


class ChatModel(Base):
    """SQLAlchemy model for chats table.

    One row per (requirement, bidder). ``message_seq`` is the per-chat
    allocator for message sequence numbers; it is only ever advanced with an
    in-database increment.
    """

    __tablename__ = "chats"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    requirement_id = Column(Uuid, ForeignKey("requirements.id"), nullable=False)
    posted_by = Column(Uuid, ForeignKey("event_participants.id"), nullable=False)
    bidder_id = Column(Uuid, ForeignKey("event_participants.id"), nullable=False)
    last_activity = Column(DateTime(timezone=True), nullable=False)
    unread_posted_by = Column(Integer, nullable=False, default=0)
    unread_bidder = Column(Integer, nullable=False, default=0)
    message_seq = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    # Relationships
    requirement = relationship("RequirementModel", back_populates="chats")
    messages = relationship("MessageModel", back_populates="chat")

    __table_args__ = (
        UniqueConstraint(
            "requirement_id", "bidder_id", name="uq_chats_requirement_bidder"
        ),
        CheckConstraint("posted_by <> bidder_id", name="ck_chats_not_self"),
        CheckConstraint(
            "unread_posted_by >= 0 AND unread_bidder >= 0",
            name="ck_chats_unread_non_negative",
        ),
        Index("idx_chats_posted_by_activity", "posted_by", "last_activity"),
        Index("idx_chats_bidder_activity", "bidder_id", "last_activity"),
        Index("idx_chats_requirement_activity", "requirement_id", "last_activity"),
    )
