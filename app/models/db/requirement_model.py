import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.database import Base


class RequirementModel(Base):
    """SQLAlchemy model for requirements table."""

    __tablename__ = "requirements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, nullable=False)
    posted_by = Column(Uuid, ForeignKey("event_participants.id"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    budget = Column(Numeric(12, 2, asdecimal=False))
    currency = Column(String(3))
    location_preference = Column(String(255))
    bidders_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    # Relationships
    chats = relationship("ChatModel", back_populates="requirement")

    __table_args__ = (
        CheckConstraint("bidders_count >= 0", name="ck_requirements_bidders_count"),
        Index("idx_requirements_event_created", "event_id", "created_at"),
        Index("idx_requirements_posted_by", "posted_by"),
    )
