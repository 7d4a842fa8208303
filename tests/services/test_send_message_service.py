from datetime import datetime, timedelta, timezone
from typing import Dict
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import (
    AuthorizationError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from app.models.api.chats import ChatSide, SubmitBidResponse
from app.models.db.participant_model import ParticipantModel
from app.repositories.chat_repository import ChatRepository
from app.repositories.message_repository import MessageRepository
from app.services.chat_access import get_chat_for_member
from app.services.mark_chat_read_service import MarkChatReadService
from app.services.send_message_service import SendMessageService


class TestSendMessageService:
    """Integration tests for SendMessageService against SQLite."""

    async def test_poster_reply_counts_for_bidder(
        self,
        session_factory: async_sessionmaker,
        participants: Dict[str, ParticipantModel],
        bid: SubmitBidResponse,
    ) -> None:
        """The recipient's counter moves; the sender's does not."""
        poster = participants["poster"]
        async with session_factory() as db:
            result = await SendMessageService(db).send_message(
                poster.id, str(bid.chat.id), "  What's your timeline?  "
            )

        assert result.message.text == "What's your timeline?"
        assert result.message.seq == 2
        assert result.message.is_own_message is True
        assert result.message.sender.name == "Priya Poster"
        assert result.chat.unread_count.posted_by == 1
        assert result.chat.unread_count.bidder == 1

    async def test_unread_flow(
        self,
        session_factory: async_sessionmaker,
        participants: Dict[str, ParticipantModel],
        bid: SubmitBidResponse,
    ) -> None:
        """Poster reads, bidder replies, poster reads again."""
        poster = participants["poster"]
        bidder = participants["bidder"]
        chat_id = str(bid.chat.id)

        async with session_factory() as db:
            chat = await MarkChatReadService(db).mark_as_read(poster.id, chat_id)
        assert chat.unread_count.posted_by == 0

        async with session_factory() as db:
            result = await SendMessageService(db).send_message(
                poster.id, chat_id, "What's your timeline?"
            )
        assert result.chat.unread_count.posted_by == 0
        assert result.chat.unread_count.bidder == 1

        async with session_factory() as db:
            result = await SendMessageService(db).send_message(
                bidder.id, chat_id, "2 weeks"
            )
        assert result.chat.unread_count.posted_by == 1
        assert result.message.seq == 3

        async with session_factory() as db:
            chat = await MarkChatReadService(db).mark_as_read(poster.id, chat_id)
        assert chat.unread_count.posted_by == 0
        assert chat.unread_count.bidder == 1

    @pytest.mark.parametrize("text", [None, "", "   \n\t"])
    async def test_blank_text_rejected(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        bid: SubmitBidResponse,
        text: str,
    ) -> None:
        with pytest.raises(ValidationError):
            await SendMessageService(test_db).send_message(
                participants["poster"].id, str(bid.chat.id), text
            )

    async def test_unknown_chat(
        self, test_db: AsyncSession, participants: Dict[str, ParticipantModel]
    ) -> None:
        with pytest.raises(NotFoundError):
            await SendMessageService(test_db).send_message(
                participants["poster"].id, str(uuid4()), "hello"
            )

    async def test_malformed_chat_id(
        self, test_db: AsyncSession, participants: Dict[str, ParticipantModel]
    ) -> None:
        with pytest.raises(ValidationError):
            await SendMessageService(test_db).send_message(
                participants["poster"].id, "chat-1", "hello"
            )

    async def test_non_member_rejected_without_side_effects(
        self,
        session_factory: async_sessionmaker,
        participants: Dict[str, ParticipantModel],
        bid: SubmitBidResponse,
    ) -> None:
        """A third participant cannot write into someone else's chat."""
        intruder = participants["other_bidder"]
        async with session_factory() as db:
            with pytest.raises(AuthorizationError):
                await SendMessageService(db).send_message(
                    intruder.id, str(bid.chat.id), "let me in"
                )

        async with session_factory() as db:
            chat = await ChatRepository(db).get_by_id(bid.chat.id)
            messages = await MessageRepository(db).list_page(bid.chat.id, limit=10)
        assert chat.unread_count.posted_by == 1
        assert chat.unread_count.bidder == 0
        assert len(messages) == 1

    async def test_storage_failure_rolls_back_counters(
        self,
        session_factory: async_sessionmaker,
        participants: Dict[str, ParticipantModel],
        bid: SubmitBidResponse,
    ) -> None:
        """A failed insert leaves seq and counters untouched."""
        poster = participants["poster"]
        async with session_factory() as db:
            service = SendMessageService(db)
            with patch.object(
                service.message_repo,
                "append",
                AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("boom"))),
            ):
                with pytest.raises(InternalError):
                    await service.send_message(poster.id, str(bid.chat.id), "hello")

        async with session_factory() as db:
            result = await SendMessageService(db).send_message(
                poster.id, str(bid.chat.id), "hello again"
            )
        assert result.message.seq == 2
        assert result.chat.unread_count.bidder == 1

    async def test_sequential_sends_from_stale_snapshots(
        self,
        session_factory: async_sessionmaker,
        participants: Dict[str, ParticipantModel],
        bid: SubmitBidResponse,
    ) -> None:
        """Back-to-back sends from sessions holding stale chat snapshots lose no updates.

        The sends run one after the other; seq, unread and lastActivity are
        applied as in-database deltas, so neither send writes back what its
        session read earlier.
        """
        poster = participants["poster"]
        bidder = participants["bidder"]

        async with session_factory() as poster_db, session_factory() as bidder_db:
            # Both sides load the chat before either writes
            await get_chat_for_member(ChatRepository(poster_db), bid.chat.id, poster.id)
            await get_chat_for_member(ChatRepository(bidder_db), bid.chat.id, bidder.id)

            first = await SendMessageService(poster_db).send_message(
                poster.id, str(bid.chat.id), "from poster"
            )
            second = await SendMessageService(bidder_db).send_message(
                bidder.id, str(bid.chat.id), "from bidder"
            )

        assert {first.message.seq, second.message.seq} == {2, 3}
        assert second.chat.unread_count.bidder == 1
        assert second.chat.unread_count.posted_by == 2
        assert second.chat.last_activity >= first.chat.last_activity

        async with session_factory() as db:
            messages = await MessageRepository(db).list_page(bid.chat.id, limit=10)
        assert [m.seq for m in messages] == [3, 2, 1]


class TestChatRepositoryRecordMessage:
    """Atomic chat updates applied by ChatRepository.record_message."""

    async def test_last_activity_never_moves_backwards(
        self,
        session_factory: async_sessionmaker,
        participants: Dict[str, ParticipantModel],
        bid: SubmitBidResponse,
    ) -> None:
        """A message stamped earlier than the last one keeps the later time."""
        later = datetime.now(timezone.utc) + timedelta(minutes=5)
        earlier = later - timedelta(minutes=2)

        async with session_factory() as db:
            repo = ChatRepository(db)
            first_seq = await repo.record_message(bid.chat.id, ChatSide.BIDDER, later)
            second_seq = await repo.record_message(
                bid.chat.id, ChatSide.POSTED_BY, earlier
            )
            await db.commit()

        async with session_factory() as db:
            chat = await ChatRepository(db).get_by_id(bid.chat.id)

        assert (first_seq, second_seq) == (2, 3)
        assert chat.last_activity.replace(tzinfo=None) == later.replace(tzinfo=None)
        assert chat.unread_count.bidder == 1
        assert chat.unread_count.posted_by == 2

    async def test_reset_unread_is_idempotent(
        self,
        session_factory: async_sessionmaker,
        participants: Dict[str, ParticipantModel],
        bid: SubmitBidResponse,
    ) -> None:
        async with session_factory() as db:
            repo = ChatRepository(db)
            await repo.reset_unread(bid.chat.id, ChatSide.POSTED_BY)
            await repo.reset_unread(bid.chat.id, ChatSide.POSTED_BY)
            await db.commit()
            chat = await repo.get_by_id(bid.chat.id, refresh=True)

        assert chat.unread_count.posted_by == 0
        assert chat.unread_count.bidder == 0
