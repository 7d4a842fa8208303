from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import case, func, literal, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.api.chats import ChatResponse, ChatSide, UnreadCount
from app.models.db.chat_model import ChatModel
from app.models.db.requirement_model import RequirementModel
from app.repositories.base_repository import BaseRepository

# (chat, requirement title, requirement bidders count)
InboxRow = Tuple[ChatResponse, str, int]


def _unread_column(side: ChatSide) -> Any:
    if side is ChatSide.POSTED_BY:
        return ChatModel.unread_posted_by
    return ChatModel.unread_bidder


class ChatRepository(BaseRepository[ChatModel, ChatResponse]):
    """Repository for chat operations.

    Counters, the message sequence and ``last_activity`` are only changed with
    in-database expressions so concurrent writers never overwrite each other.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(db, ChatModel)

    async def get_by_requirement_and_bidder(
        self, requirement_id: UUID, bidder_id: UUID
    ) -> Optional[ChatResponse]:
        """Get the chat a bidder opened on a requirement."""
        query = select(self.model_class).where(
            self.model_class.requirement_id == requirement_id,
            self.model_class.bidder_id == bidder_id,
        )
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def create_for_bid(
        self,
        requirement_id: UUID,
        posted_by: UUID,
        bidder_id: UUID,
        opened_at: datetime,
    ) -> ChatResponse:
        """Stage a chat that already accounts for the bidder's opening message."""
        return await self.add(
            ChatModel(
                requirement_id=requirement_id,
                posted_by=posted_by,
                bidder_id=bidder_id,
                last_activity=opened_at,
                unread_posted_by=1,
                unread_bidder=0,
                message_seq=1,
            )
        )

    async def record_message(
        self, chat_id: UUID, recipient: ChatSide, sent_at: datetime
    ) -> int:
        """Allocate the next message seq and apply the message's side effects.

        Bumps ``last_activity`` (never backwards) and the recipient's unread
        counter in the same UPDATE, then returns the allocated seq.
        """
        unread = _unread_column(recipient)
        sent_at_value = literal(sent_at, ChatModel.last_activity.type)
        await self.db.execute(
            update(self.model_class)
            .where(self.model_class.id == chat_id)
            .values(
                {
                    self.model_class.message_seq: self.model_class.message_seq + 1,
                    self.model_class.last_activity: case(
                        (
                            self.model_class.last_activity < sent_at_value,
                            sent_at_value,
                        ),
                        else_=self.model_class.last_activity,
                    ),
                    unread: unread + 1,
                }
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(
            select(self.model_class.message_seq).where(self.model_class.id == chat_id)
        )
        return result.scalar_one()

    async def reset_unread(self, chat_id: UUID, side: ChatSide) -> None:
        """Set one side's unread counter to zero."""
        await self.db.execute(
            update(self.model_class)
            .where(self.model_class.id == chat_id)
            .values({_unread_column(side): 0})
            .execution_options(synchronize_session=False)
        )

    async def list_by_requirement(self, requirement_id: UUID) -> List[ChatResponse]:
        """All chats on a requirement, most recently active first."""
        query = (
            select(self.model_class)
            .where(self.model_class.requirement_id == requirement_id)
            .order_by(
                self.model_class.last_activity.desc(), self.model_class.id.desc()
            )
        )
        result = await self.db.execute(query)
        return [self._to_pydantic(m) for m in result.scalars().all()]

    async def count_by_requirements(
        self, requirement_ids: Iterable[UUID]
    ) -> Dict[UUID, int]:
        """Number of chats per requirement."""
        ids = set(requirement_ids)
        if not ids:
            return {}
        query = (
            select(self.model_class.requirement_id, func.count(self.model_class.id))
            .where(self.model_class.requirement_id.in_(ids))
            .group_by(self.model_class.requirement_id)
        )
        result = await self.db.execute(query)
        return {requirement_id: count for requirement_id, count in result.all()}

    async def first_bidders_by_requirements(
        self, requirement_ids: Iterable[UUID], per_requirement: int = 3
    ) -> Dict[UUID, List[UUID]]:
        """Earliest bidders of each requirement, oldest chat first."""
        ids = set(requirement_ids)
        if not ids:
            return {}
        ranked = (
            select(
                self.model_class.requirement_id,
                self.model_class.bidder_id,
                self.model_class.created_at,
                func.row_number()
                .over(
                    partition_by=self.model_class.requirement_id,
                    order_by=(
                        self.model_class.created_at.asc(),
                        self.model_class.id.asc(),
                    ),
                )
                .label("rn"),
            )
            .where(self.model_class.requirement_id.in_(ids))
            .subquery()
        )
        query = (
            select(ranked.c.requirement_id, ranked.c.bidder_id)
            .where(ranked.c.rn <= per_requirement)
            .order_by(ranked.c.requirement_id, ranked.c.rn)
        )
        result = await self.db.execute(query)
        bidders: Dict[UUID, List[UUID]] = {}
        for requirement_id, bidder_id in result.all():
            bidders.setdefault(requirement_id, []).append(bidder_id)
        return bidders

    async def latest_per_requirement_for_poster(
        self, posted_by: UUID, limit: int, offset: int
    ) -> List[InboxRow]:
        """Most recently active chat of each requirement the poster owns."""
        ranked = (
            select(
                self.model_class.id.label("chat_id"),
                func.row_number()
                .over(
                    partition_by=self.model_class.requirement_id,
                    order_by=(
                        self.model_class.last_activity.desc(),
                        self.model_class.id.desc(),
                    ),
                )
                .label("rn"),
            )
            .where(self.model_class.posted_by == posted_by)
            .subquery()
        )
        query = (
            select(
                self.model_class,
                RequirementModel.title,
                RequirementModel.bidders_count,
            )
            .join(ranked, ranked.c.chat_id == self.model_class.id)
            .join(
                RequirementModel,
                RequirementModel.id == self.model_class.requirement_id,
            )
            .where(ranked.c.rn == 1)
            .order_by(
                self.model_class.last_activity.desc(), self.model_class.id.desc()
            )
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return [
            (self._to_pydantic(chat), title, bidders_count or 0)
            for chat, title, bidders_count in result.all()
        ]

    async def count_requirements_with_chats(self, posted_by: UUID) -> int:
        """Number of the poster's requirements that have at least one chat."""
        query = select(
            func.count(func.distinct(self.model_class.requirement_id))
        ).where(self.model_class.posted_by == posted_by)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def list_for_bidder(
        self, bidder_id: UUID, limit: int, offset: int
    ) -> List[InboxRow]:
        """Chats the participant opened as a bidder, most recent first."""
        query = (
            select(
                self.model_class,
                RequirementModel.title,
                RequirementModel.bidders_count,
            )
            .join(
                RequirementModel,
                RequirementModel.id == self.model_class.requirement_id,
            )
            .where(self.model_class.bidder_id == bidder_id)
            .order_by(
                self.model_class.last_activity.desc(), self.model_class.id.desc()
            )
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return [
            (self._to_pydantic(chat), title, bidders_count or 0)
            for chat, title, bidders_count in result.all()
        ]

    async def count_for_bidder(self, bidder_id: UUID) -> int:
        query = (
            select(func.count())
            .select_from(self.model_class)
            .where(self.model_class.bidder_id == bidder_id)
        )
        result = await self.db.execute(query)
        return result.scalar_one()

    async def unread_totals(self, participant_id: UUID) -> Tuple[int, int]:
        """Unread totals as (as poster, as bidder)."""
        posted_query = select(
            func.coalesce(func.sum(self.model_class.unread_posted_by), 0)
        ).where(self.model_class.posted_by == participant_id)
        bidder_query = select(
            func.coalesce(func.sum(self.model_class.unread_bidder), 0)
        ).where(self.model_class.bidder_id == participant_id)
        posted_by_me = (await self.db.execute(posted_query)).scalar_one()
        as_bidder = (await self.db.execute(bidder_query)).scalar_one()
        return int(posted_by_me), int(as_bidder)

    def _to_pydantic(self, db_model: Any) -> ChatResponse:
        """Convert SQLAlchemy ChatModel to Pydantic ChatResponse."""
        return ChatResponse(
            id=db_model.id,
            requirement_id=db_model.requirement_id,
            posted_by=db_model.posted_by,
            bidder_id=db_model.bidder_id,
            last_activity=db_model.last_activity,
            unread_count=UnreadCount(
                posted_by=db_model.unread_posted_by or 0,
                bidder=db_model.unread_bidder or 0,
            ),
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )
