"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh in-memory SQLite database (aiosqlite). Set
TEST_DATABASE_URL to run against PostgreSQL instead. Requests get their own
session that commits or rolls back like the real get_db; fixtures seed data
through a separate session.
"""

import os
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import AsyncGenerator

# Must be set before app modules read settings
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token
from app.models.enums import EventStatus
from app.models.event import ScheduleSlot, WhatsOnEvent
from app.models.gig import Gig, GigLocation
from app.models.user_profile import UserProfile

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _engine_kwargs() -> dict:
    if TEST_DATABASE_URL.startswith("sqlite"):
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {}


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables on a fresh engine, then drop them for isolation."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, **_engine_kwargs())
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def headers_for(user_id: uuid.UUID) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


async def make_profile(db: AsyncSession, user_id: uuid.UUID, **fields) -> UserProfile:
    values = {
        "firstname": "Test",
        "surname": "User",
        "email": f"{user_id.hex[:8]}@example.com",
        "phone": "+971 50 000 0000",
        "country": "UAE",
        "city": "Dubai",
    }
    values.update(fields)
    profile = UserProfile(user_id=user_id, **values)
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


async def make_gig(db: AsyncSession, created_by: uuid.UUID, **fields) -> Gig:
    values = {
        "slug": f"gig-{uuid.uuid4().hex[:8]}",
        "title": "Camera Operator",
        "description": "Two-day commercial shoot",
        "amount": 1500,
        "currency": "AED",
        "status": "active",
        "created_by": created_by,
    }
    values.update(fields)
    gig = Gig(**values, locations=[GigLocation(location_name="Dubai")])
    db.add(gig)
    await db.commit()
    await db.refresh(gig)
    return gig


async def make_event(db: AsyncSession, created_by: uuid.UUID, slots: int = 2, **fields) -> WhatsOnEvent:
    values = {
        "slug": f"event-{uuid.uuid4().hex[:8]}",
        "title": "Gallery Night",
        "description": "An evening of new work",
        "location": "Alserkal Avenue",
        "status": EventStatus.PUBLISHED.value,
        "total_spots": 10,
        "is_unlimited_spots": False,
        "max_spots_per_person": 4,
        "created_by": created_by,
        "version": 1,
    }
    values.update(fields)
    day = date.today() + timedelta(days=14)
    schedule = [
        ScheduleSlot(
            event_date=day + timedelta(days=i),
            start_time=time(18, 0),
            end_time=time(21, 0),
            timezone="GST",
            sort_order=i,
        )
        for i in range(slots)
    ]
    event = WhatsOnEvent(**values, schedule=schedule)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


@pytest_asyncio.fixture
async def creator_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest_asyncio.fixture
async def member_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest_asyncio.fixture
async def creator_profile(db_session: AsyncSession, creator_id) -> UserProfile:
    return await make_profile(db_session, creator_id, name="Studio Nine", firstname="Nadia", surname="Haddad")


@pytest_asyncio.fixture
async def member_profile(db_session: AsyncSession, member_id) -> UserProfile:
    return await make_profile(db_session, member_id, name="Omar Khalil", firstname="Omar", surname="Khalil")


@pytest_asyncio.fixture
async def creator_headers(creator_id) -> dict:
    return headers_for(creator_id)


@pytest_asyncio.fixture
async def member_headers(member_id) -> dict:
    return headers_for(member_id)


@pytest_asyncio.fixture
async def test_gig(db_session: AsyncSession, creator_id, creator_profile) -> Gig:
    return await make_gig(db_session, creator_id)


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, creator_id, creator_profile) -> WhatsOnEvent:
    return await make_event(db_session, creator_id)


def future(days: int = 7) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)


def past(days: int = 1) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)
