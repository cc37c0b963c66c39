"""
Pytest fixtures for test database, client, and caller identities.

Every test gets its own in-memory SQLite database, so nothing needs to be
rolled back or dropped between tests.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DATABASE_URL_SYNC"] = "sqlite:///:memory:"
os.environ["REDIS_ENABLED"] = "false"
os.environ["OVERDUE_SWEEP_ENABLED"] = "false"
os.environ.pop("API_KEY", None)

from decimal import Decimal
from typing import AsyncGenerator
from urllib.parse import quote

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from kakibadminton.main import app
from kakibadminton.db.base import Base
from kakibadminton.db.session import get_db
from kakibadminton.models.user import User
from kakibadminton.models.session import PlaySession
from kakibadminton.services import identity_service, roster_service, session_service
from kakibadminton.services.settlement_service import settle_session

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

HOST_ID = 1001
ALICE_ID = 1002
BOB_ID = 1003
GROUP_ID = -100500


def identity_headers(user_id: int, first_name: str, username: str = None) -> dict:
    headers = {"X-User-Id": str(user_id), "X-User-First-Name": quote(first_name)}
    if username:
        headers["X-User-Username"] = username
    return headers


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh schema on a private in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def host(db_session: AsyncSession) -> User:
    return await identity_service.upsert_user(db_session, HOST_ID, "Hana", "hana_host")


@pytest_asyncio.fixture
async def alice(db_session: AsyncSession) -> User:
    return await identity_service.upsert_user(db_session, ALICE_ID, "Alice", "alice")


@pytest_asyncio.fixture
async def bob(db_session: AsyncSession) -> User:
    return await identity_service.upsert_user(db_session, BOB_ID, "Bob")


@pytest_asyncio.fixture
async def open_session(db_session: AsyncSession, host: User, alice: User, bob: User) -> PlaySession:
    """Session hosted by Hana with Alice and Bob in."""
    session = await session_service.create_session(
        db_session, GROUP_ID, host, location="Court 3", scheduled_for="Fri 8pm"
    )
    await roster_service.join_session(db_session, session.id, alice.id, alice.first_name, alice.username)
    await roster_service.join_session(db_session, session.id, bob.id, bob.first_name, bob.username)
    await db_session.commit()
    return session


@pytest_asyncio.fixture
async def settled_session(db_session: AsyncSession, open_session: PlaySession) -> PlaySession:
    """open_session settled at 30.00 per person."""
    await settle_session(
        db_session,
        open_session.id,
        per_person=Decimal("30.00"),
        court_fee=Decimal("60.00"),
        tube_price=Decimal("95.00"),
        shuttles_used=4,
    )
    await db_session.commit()
    return open_session


@pytest.fixture
def host_headers() -> dict:
    return identity_headers(HOST_ID, "Hana", "hana_host")


@pytest.fixture
def alice_headers() -> dict:
    return identity_headers(ALICE_ID, "Alice", "alice")


@pytest.fixture
def bob_headers() -> dict:
    return identity_headers(BOB_ID, "Bob")
