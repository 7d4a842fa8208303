import uuid

from sqlalchemy import Column, DateTime, String, Uuid, func

from app.database import Base


class ParticipantModel(Base):
    """SQLAlchemy model for the event_participants table.

    Rows are owned by the event/profile system; this service only reads them
    to authenticate connections and to resolve display identities.
    """

    __tablename__ = "event_participants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    profile_image = Column(String(1024))
    position = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=func.now())
