"""Shared test fixtures.

Every test gets a fresh in-memory SQLite database (aiosqlite + StaticPool)
built from the ORM metadata, seeded with three profiles and a few objectives.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

os.environ.setdefault("WANDERLIST_LOG_FORMAT", "console")
os.environ.setdefault("WANDERLIST_BLOB_PROVIDER", "local")

from wanderlist.config import get_settings  # noqa: E402
from wanderlist.database import close_db, get_engine, get_session, init_db  # noqa: E402
from wanderlist.db.base import Base  # noqa: E402
from wanderlist.db.models import Category, Objective, ObjectiveItem, Profile  # noqa: E402
from wanderlist.feed.synchronizer import ActivityFeedSynchronizer  # noqa: E402
from wanderlist.gateway.sql import SqlGateway  # noqa: E402
from wanderlist.objectives.membership import MembershipManager  # noqa: E402
from wanderlist.progress.tracker import ProgressTracker  # noqa: E402
from wanderlist.session import SessionContext  # noqa: E402
from wanderlist.social.follow_manager import FollowManager  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"

ALICE_ID = "11111111-1111-4111-8111-111111111111"
BOB_ID = "22222222-2222-4222-8222-222222222222"
CAROL_ID = "33333333-3333-4333-8333-333333333333"

LANDMARKS_ID = "aaaaaaaa-0000-4000-8000-000000000001"
CAPITALS_ID = "aaaaaaaa-0000-4000-8000-000000000002"
EMPTY_ID = "aaaaaaaa-0000-4000-8000-000000000003"

CITIES_CATEGORY_ID = "cccccccc-0000-4000-8000-000000000001"
MONUMENTS_CATEGORY_ID = "cccccccc-0000-4000-8000-000000000002"


@dataclass
class SeedData:
    """Ids of the seeded rows."""

    alice: SessionContext
    bob: SessionContext
    carol: SessionContext
    landmarks_id: str = LANDMARKS_ID
    capitals_id: str = CAPITALS_ID
    empty_id: str = EMPTY_ID
    landmark_items: list[str] = field(default_factory=list)
    capital_items: list[str] = field(default_factory=list)


async def _seed(db: AsyncSession) -> SeedData:
    now = datetime.now(timezone.utc)
    db.add_all([
        Profile(id=ALICE_ID, username="alice", city="Lisbon", avatar_url=f"{ALICE_ID}/avatar.png", created_at=now),
        Profile(id=BOB_ID, username="bob", city="Porto", created_at=now),
        Profile(id=CAROL_ID, username="Carolina", created_at=now),
        Category(id=MONUMENTS_CATEGORY_ID, name="Monuments", slug="monuments", icon="landmark"),
        Category(id=CITIES_CATEGORY_ID, name="Cities", slug="cities", icon="building"),
        Objective(
            id=LANDMARKS_ID, title="Lisbon Landmarks", total_items=3, category_id=MONUMENTS_CATEGORY_ID, created_at=now
        ),
        Objective(id=CAPITALS_ID, title="Iberian Capitals", total_items=2, category_id=CITIES_CATEGORY_ID, created_at=now),
        Objective(id=EMPTY_ID, title="Coming Soon", total_items=0, created_at=now),
    ])
    landmarks = [
        ObjectiveItem(objective_id=LANDMARKS_ID, name=name, latitude=lat, longitude=lng, order_index=i)
        for i, (name, lat, lng) in enumerate([
            ("Belem Tower", 38.6916, -9.2160),
            ("Jeronimos Monastery", 38.6979, -9.2068),
            ("Sao Jorge Castle", 38.7139, -9.1335),
        ])
    ]
    capitals = [
        ObjectiveItem(objective_id=CAPITALS_ID, name="Madrid", latitude=40.4168, longitude=-3.7038, order_index=0),
        ObjectiveItem(objective_id=CAPITALS_ID, name="Lisbon", latitude=38.7223, longitude=-9.1393, order_index=1),
    ]
    db.add_all(landmarks + capitals)
    await db.commit()
    return SeedData(
        alice=SessionContext(user_id=ALICE_ID, display_name="alice"),
        bob=SessionContext(user_id=BOB_ID, display_name="bob"),
        carol=SessionContext(user_id=CAROL_ID),
        landmark_items=[item.id for item in landmarks],
        capital_items=[item.id for item in capitals],
    )


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """A session on a fresh in-memory database."""
    get_settings.cache_clear()
    await init_db(TEST_DATABASE_URL, poolclass=StaticPool, connect_args={"check_same_thread": False})
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    sessions = get_session()
    session = await anext(sessions)
    yield session
    await sessions.aclose()
    await close_db()


@pytest_asyncio.fixture
async def seed(db_session: AsyncSession) -> SeedData:
    return await _seed(db_session)


@pytest_asyncio.fixture
async def gateway(db_session: AsyncSession) -> SqlGateway:
    return SqlGateway(db_session)


@pytest_asyncio.fixture
async def feed(gateway: SqlGateway) -> ActivityFeedSynchronizer:
    return ActivityFeedSynchronizer(gateway)


@pytest_asyncio.fixture
async def tracker(gateway: SqlGateway, feed: ActivityFeedSynchronizer) -> ProgressTracker:
    return ProgressTracker(gateway, feed)


@pytest_asyncio.fixture
async def membership(
    gateway: SqlGateway, tracker: ProgressTracker, feed: ActivityFeedSynchronizer
) -> MembershipManager:
    return MembershipManager(gateway, tracker, feed)


@pytest_asyncio.fixture
async def follows(gateway: SqlGateway, feed: ActivityFeedSynchronizer) -> FollowManager:
    return FollowManager(gateway, feed)


@pytest_asyncio.fixture
async def client(seed: SeedData) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, sharing the seeded in-memory database."""
    from wanderlist.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
