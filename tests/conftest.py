import os

# Settings must be in place before the app modules read them at import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.pop("NOTIFICATION_SERVICE_URL", None)
os.environ.pop("ENV", None)
os.environ.pop("COMMIT_HASH", None)

from datetime import datetime, timezone  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any, AsyncGenerator, Callable, Dict, Generator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import pool  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import app.models.db  # noqa: E402,F401
from app.auth import EventIdentity, get_current_participant  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.dependencies import get_fanout  # noqa: E402
from app.main import app  # noqa: E402
from app.models.api.chats import SubmitBidRequest, SubmitBidResponse  # noqa: E402
from app.models.api.requirements import (  # noqa: E402
    CreateRequirementRequest,
    RequirementResponse,
)
from app.models.db.participant_model import ParticipantModel  # noqa: E402
from app.services.requirement_service import RequirementService  # noqa: E402
from app.services.submit_bid_service import SubmitBidService  # noqa: E402

EVENT_ID = UUID("6f1c2a0e-8a53-4d0e-9a55-1f6f3b2c7d10")
OTHER_EVENT_ID = UUID("0b8e4f52-2f61-4d7b-8f0c-5a9c1d3e7f22")


@pytest.fixture(scope="function")
async def test_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine; every session gets its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=pool.NullPool,
        future=True,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Clean up
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def test_db(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Database session for integration tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def participants(session_factory: async_sessionmaker) -> Dict[str, ParticipantModel]:
    """Poster, two bidders and a participant of another event."""
    people = {
        "poster": ParticipantModel(
            id=uuid4(), event_id=EVENT_ID, name="Priya Poster",
            profile_image="https://cdn.example.com/priya.png",
        ),
        "bidder": ParticipantModel(
            id=uuid4(), event_id=EVENT_ID, name="Quentin Bidder",
            profile_image="https://cdn.example.com/quentin.png",
        ),
        "other_bidder": ParticipantModel(
            id=uuid4(), event_id=EVENT_ID, name="Rosa Bidder",
        ),
        "outsider": ParticipantModel(
            id=uuid4(), event_id=OTHER_EVENT_ID, name="Olaf Outsider",
        ),
    }
    async with session_factory() as session:
        session.add_all(people.values())
        await session.commit()
    return people


@pytest.fixture(scope="function")
async def mock_db() -> AsyncGenerator[AsyncMock, None]:
    """Create a mock database session for unit tests."""
    # Use mock to avoid database connection issues in unit tests
    mock_session = AsyncMock()
    mock_session.commit = AsyncMock()
    mock_session.rollback = AsyncMock()
    mock_session.close = AsyncMock()
    mock_session.refresh = AsyncMock()
    mock_session.flush = AsyncMock()
    mock_session.execute = AsyncMock()
    mock_session.add = MagicMock()  # add is sync, not async

    yield mock_session


@pytest.fixture
def identity() -> EventIdentity:
    """Authenticated caller used by router tests."""
    return EventIdentity(participant_id=uuid4(), event_id=EVENT_ID, user_id="user-1")


@pytest.fixture
def mock_fanout() -> MagicMock:
    fanout = MagicMock()
    fanout.bid_submitted = AsyncMock()
    fanout.message_sent = AsyncMock()
    fanout.chat_read = AsyncMock()
    return fanout


@pytest.fixture
def client() -> Generator[TestClient, Any, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def authed_client(
    identity: EventIdentity, mock_fanout: MagicMock
) -> Generator[TestClient, Any, None]:
    """Test client with the caller, database and fan-out overridden."""

    async def override_db() -> AsyncGenerator[AsyncMock, None]:
        yield AsyncMock()

    app.dependency_overrides[get_current_participant] = lambda: identity
    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_fanout] = lambda: mock_fanout
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Sign access tokens the way the auth service does."""

    def _make_token(
        participant_id: Any,
        event_id: Any = EVENT_ID,
        role: str = "user",
        secret: str = "test-secret",
        **extra: Any,
    ) -> str:
        claims: Dict[str, Any] = {
            "id": "user-" + str(participant_id)[:8],
            "role": role,
            "eventId": str(event_id) if event_id else None,
            "eventUserId": str(participant_id) if participant_id else None,
            "iat": int(datetime.now(timezone.utc).timestamp()),
        }
        claims.update(extra)
        return jwt.encode(claims, secret, algorithm="HS256")

    return _make_token


@pytest.fixture
async def requirement(
    session_factory: async_sessionmaker, participants: Dict[str, ParticipantModel]
) -> RequirementResponse:
    """'Need a logo' posted by the poster."""
    poster = participants["poster"]
    async with session_factory() as db:
        return await RequirementService(db).post_requirement(
            poster.id,
            poster.event_id,
            CreateRequirementRequest(
                title="Need a logo",
                description="Logo for our booth",
                budget=500,
                currency="inr",
            ),
        )


@pytest.fixture
async def bid(
    session_factory: async_sessionmaker,
    participants: Dict[str, ParticipantModel],
    requirement: RequirementResponse,
) -> SubmitBidResponse:
    """Opening bid from the bidder on the requirement."""
    bidder = participants["bidder"]
    async with session_factory() as db:
        return await SubmitBidService(db).submit_bid(
            bidder.id,
            bidder.event_id,
            SubmitBidRequest(
                requirement_id=str(requirement.id), message="I can do this"
            ),
        )
