from datetime import datetime, timedelta, timezone
from typing import Dict
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import NotFoundError, ValidationError
from app.models.api.chats import SubmitBidRequest, SubmitBidResponse
from app.models.api.requirements import CreateRequirementRequest, RequirementResponse
from app.models.db.participant_model import ParticipantModel
from app.models.db.requirement_model import RequirementModel
from app.services.requirement_service import RequirementService
from app.services.submit_bid_service import SubmitBidService


class TestPostRequirement:
    """RequirementService.post_requirement validation and storage."""

    async def test_posts_trimmed_requirement(
        self,
        requirement: RequirementResponse,
        participants: Dict[str, ParticipantModel],
    ) -> None:
        assert requirement.title == "Need a logo"
        assert requirement.posted_by == participants["poster"].id
        assert requirement.budget == 500
        assert requirement.currency == "INR"
        assert requirement.bidders_count == 0

    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "  ", "description": "Logo"},
            {"title": "Logo", "description": None},
            {"title": "Logo", "description": "Logo", "budget": -1},
            {"title": "Logo", "description": "Logo", "currency": "RUPEES"},
            {"title": "Logo", "description": "Logo", "currency": "1N2"},
        ],
    )
    async def test_invalid_requirement_rejected(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        payload: dict,
    ) -> None:
        poster = participants["poster"]
        with pytest.raises(ValidationError):
            await RequirementService(test_db).post_requirement(
                poster.id, poster.event_id, CreateRequirementRequest(**payload)
            )


class TestListRequirements:
    """RequirementService.list_requirements filters, rows and pagination."""

    @pytest.fixture
    async def wall(
        self,
        session_factory: async_sessionmaker,
        participants: Dict[str, ParticipantModel],
    ) -> Dict[str, RequirementModel]:
        """Three requirements with distinct creation times, plus one elsewhere."""
        base = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
        poster = participants["poster"]
        bidder = participants["bidder"]
        outsider = participants["outsider"]
        rows = {
            "logo": RequirementModel(
                id=uuid4(), event_id=poster.event_id, posted_by=poster.id,
                title="Need a logo", description="Vector logo", created_at=base,
            ),
            "venue": RequirementModel(
                id=uuid4(), event_id=bidder.event_id, posted_by=bidder.id,
                title="Venue for dinner", description="Twenty people",
                created_at=base + timedelta(hours=1),
            ),
            "video": RequirementModel(
                id=uuid4(), event_id=poster.event_id, posted_by=poster.id,
                title="Promo video", description="Thirty seconds",
                created_at=base + timedelta(hours=2),
            ),
            "elsewhere": RequirementModel(
                id=uuid4(), event_id=outsider.event_id, posted_by=outsider.id,
                title="Need a logo too", description="Other event",
                created_at=base + timedelta(hours=3),
            ),
        }
        async with session_factory() as db:
            db.add_all(rows.values())
            await db.commit()
        return rows

    async def test_lists_event_requirements_newest_first(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        wall: Dict[str, RequirementModel],
    ) -> None:
        poster = participants["poster"]
        result = await RequirementService(test_db).list_requirements(
            poster.id, poster.event_id
        )

        assert [r.title for r in result.requirements] == [
            "Promo video",
            "Venue for dinner",
            "Need a logo",
        ]
        assert result.pagination.total_count == 3
        assert result.pagination.current_page == 1
        assert result.pagination.limit == 10
        assert result.requirements[1].posted_by.name == "Quentin Bidder"

    async def test_posted_by_me(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        wall: Dict[str, RequirementModel],
    ) -> None:
        poster = participants["poster"]
        result = await RequirementService(test_db).list_requirements(
            poster.id, poster.event_id, list_type="postedByMe"
        )
        assert {r.title for r in result.requirements} == {"Promo video", "Need a logo"}

    @pytest.mark.parametrize(
        "search,expected",
        [
            ("LOGO", ["Need a logo"]),
            ("twenty", ["Venue for dinner"]),
            ("quentin", ["Venue for dinner"]),
            ("%", []),
        ],
    )
    async def test_search(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        wall: Dict[str, RequirementModel],
        search: str,
        expected: list,
    ) -> None:
        """Search matches title, description or poster name, case-insensitively."""
        poster = participants["poster"]
        result = await RequirementService(test_db).list_requirements(
            poster.id, poster.event_id, search=search
        )
        assert [r.title for r in result.requirements] == expected

    async def test_pagination(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        wall: Dict[str, RequirementModel],
    ) -> None:
        poster = participants["poster"]
        service = RequirementService(test_db)

        first = await service.list_requirements(
            poster.id, poster.event_id, page=1, limit=2
        )
        second = await service.list_requirements(
            poster.id, poster.event_id, page=2, limit=2
        )

        assert first.pagination.total_pages == 2
        assert first.pagination.has_next_page is True
        assert second.pagination.has_next_page is False
        assert [r.title for r in second.requirements] == ["Need a logo"]

    async def test_members_and_bidder_images(
        self,
        session_factory: async_sessionmaker,
        participants: Dict[str, ParticipantModel],
        wall: Dict[str, RequirementModel],
    ) -> None:
        logo = wall["logo"]
        for key in ("bidder", "other_bidder"):
            person = participants[key]
            async with session_factory() as db:
                await SubmitBidService(db).submit_bid(
                    person.id,
                    person.event_id,
                    SubmitBidRequest(requirement_id=str(logo.id), message="Hi"),
                )

        poster = participants["poster"]
        async with session_factory() as db:
            result = await RequirementService(db).list_requirements(
                poster.id, poster.event_id, search="logo"
            )

        row = result.requirements[0]
        assert row.members_count == 2
        # Participants without a profile image are skipped
        assert row.bidder_profile_images == ["https://cdn.example.com/quentin.png"]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"list_type": "mine"},
            {"page": 0},
            {"limit": 0},
            {"limit": 51},
        ],
    )
    async def test_invalid_parameters(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        kwargs: dict,
    ) -> None:
        poster = participants["poster"]
        with pytest.raises(ValidationError):
            await RequirementService(test_db).list_requirements(
                poster.id, poster.event_id, **kwargs
            )


class TestGetRequirement:
    """RequirementService.get_requirement views for poster and others."""

    async def test_poster_sees_responses(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        requirement: RequirementResponse,
        bid: SubmitBidResponse,
    ) -> None:
        poster = participants["poster"]
        detail = await RequirementService(test_db).get_requirement(
            poster.id, poster.event_id, str(requirement.id)
        )

        assert detail.is_user_posted is True
        assert detail.bidders_count == 1
        assert [r.chat_id for r in detail.responses] == [bid.chat.id]
        assert detail.responses[0].bidder.name == "Quentin Bidder"
        assert detail.my_response is None

    async def test_bidder_sees_own_chat(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        requirement: RequirementResponse,
        bid: SubmitBidResponse,
    ) -> None:
        bidder = participants["bidder"]
        detail = await RequirementService(test_db).get_requirement(
            bidder.id, bidder.event_id, str(requirement.id)
        )

        assert detail.is_user_posted is False
        assert detail.responses is None
        assert detail.my_response == bid.chat.id
        assert detail.posted_by.name == "Priya Poster"

    async def test_participant_without_bid(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        requirement: RequirementResponse,
    ) -> None:
        other = participants["other_bidder"]
        detail = await RequirementService(test_db).get_requirement(
            other.id, other.event_id, str(requirement.id)
        )
        assert detail.my_response is None

    async def test_other_event_is_not_found(
        self,
        test_db: AsyncSession,
        participants: Dict[str, ParticipantModel],
        requirement: RequirementResponse,
    ) -> None:
        outsider = participants["outsider"]
        with pytest.raises(NotFoundError):
            await RequirementService(test_db).get_requirement(
                outsider.id, outsider.event_id, str(requirement.id)
            )
