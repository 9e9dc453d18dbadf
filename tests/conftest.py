"""
Pytest fixtures for test database, client, and authentication.

Every test gets its own SQLite database file, so concurrent sessions in a
test really contend on one store the way separate requests would.
"""

import os
import tempfile
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'ticketing-unused.db')}"
)
os.environ["REDIS_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker  # noqa: E402

from ticketing.main import app  # noqa: E402
from ticketing.db.base import Base  # noqa: E402
from ticketing.db.session import get_db  # noqa: E402
from ticketing.core.security import CurrentUser, create_access_token  # noqa: E402
from ticketing.models.event import Event  # noqa: E402
from ticketing.models.profile import Profile  # noqa: E402

BUYER_ID = "user-buyer"
OTHER_ID = "user-other"
ORGANIZER_ID = "user-organizer"


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        connect_args={"timeout": 30},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get a fresh session on the test database."""

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


def bearer(user_id: str, email: str = "", name: str = "") -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, email=email, name=name)}"}


@pytest_asyncio.fixture
async def buyer() -> CurrentUser:
    return CurrentUser(user_id=BUYER_ID, email="buyer@example.com", name="Asha Perera")


@pytest_asyncio.fixture
async def auth_headers(buyer: CurrentUser) -> dict:
    return bearer(buyer.user_id, buyer.email, buyer.name)


@pytest_asyncio.fixture
async def other_headers() -> dict:
    return bearer(OTHER_ID, "other@example.com")


@pytest_asyncio.fixture
async def organizer_headers(db_session: AsyncSession) -> dict:
    db_session.add(Profile(id=ORGANIZER_ID, role="admin", first_name="Olu", last_name="Admin"))
    await db_session.commit()
    return bearer(ORGANIZER_ID, "organizer@example.com")


def make_event(**overrides) -> Event:
    fields = dict(
        type="defined",
        status="published",
        name="Summer Concert",
        description="Live music under the stars",
        location="Galle Face Green",
        capacity=10,
        reserved_count=0,
        event_datetime=datetime.now(timezone.utc) + timedelta(days=30),
        ticket_price=Decimal("25.00"),
        created_by=ORGANIZER_ID,
    )
    fields.update(overrides)
    return Event(**fields)


@pytest_asyncio.fixture
async def published_event(db_session: AsyncSession) -> Event:
    """Published event: capacity 10, Rs 25.00 per ticket."""
    event = make_event()
    db_session.add(event)
    await db_session.commit()
    return event


@pytest_asyncio.fixture
async def draft_event(db_session: AsyncSession) -> Event:
    event = make_event(status="draft", name="Secret Gig")
    db_session.add(event)
    await db_session.commit()
    return event


@pytest_asyncio.fixture
async def voting_event(db_session: AsyncSession) -> Event:
    """Undefined event whose voting window is open right now."""
    now = datetime.now(timezone.utc)
    event = make_event(
        type="undefined",
        name="Community Football Match",
        description="Vote on the ticket price",
        ticket_price=Decimal("40.00"),
        voting_start=now - timedelta(days=1),
        voting_end=now + timedelta(days=1),
    )
    db_session.add(event)
    await db_session.commit()
    return event
