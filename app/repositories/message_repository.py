from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.api.messages import Attachment, MessageRecord
from app.models.db.message_model import MessageModel
from app.repositories.base_repository import BaseRepository


class MessageRepository(BaseRepository[MessageModel, MessageRecord]):
    """Repository for message operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, MessageModel)

    async def append(
        self,
        chat_id: UUID,
        sender_id: UUID,
        seq: int,
        text: Optional[str],
        created_at: datetime,
        attachments: Optional[List[Attachment]] = None,
    ) -> MessageRecord:
        """Stage a message at an already allocated seq."""
        return await self.add(
            MessageModel(
                chat_id=chat_id,
                sender_id=sender_id,
                seq=seq,
                text=text,
                attachments=[a.model_dump() for a in attachments or []],
                created_at=created_at,
            )
        )

    async def get_in_chat(
        self, chat_id: UUID, message_id: UUID
    ) -> Optional[MessageRecord]:
        """Get a message only if it belongs to the given chat."""
        query = select(self.model_class).where(
            self.model_class.id == message_id,
            self.model_class.chat_id == chat_id,
        )
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def list_page(
        self, chat_id: UUID, limit: int, before_seq: Optional[int] = None
    ) -> List[MessageRecord]:
        """Newest-first slice of a chat, optionally strictly older than a seq."""
        query = select(self.model_class).where(self.model_class.chat_id == chat_id)
        if before_seq is not None:
            query = query.where(self.model_class.seq < before_seq)
        query = query.order_by(self.model_class.seq.desc()).limit(limit)
        result = await self.db.execute(query)
        return [self._to_pydantic(m) for m in result.scalars().all()]

    def _to_pydantic(self, db_model: Any) -> MessageRecord:
        """Convert SQLAlchemy MessageModel to Pydantic MessageRecord."""
        return MessageRecord(
            id=db_model.id,
            chat_id=db_model.chat_id,
            sender_id=db_model.sender_id,
            seq=db_model.seq,
            text=db_model.text,
            attachments=db_model.attachments or [],
            created_at=db_model.created_at,
        )
