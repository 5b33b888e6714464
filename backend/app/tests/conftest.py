############################################################
#
# requestbooth - Live Event Song Request Service
#
# conftest.py: Pytest configuration and shared test fixtures
#
############################################################

"""Pytest configuration and shared fixtures for RequestBooth tests."""

import os

# Must be set before backend.app modules read settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_FORMAT"] = "console"
os.environ["INITIAL_DJ_PASSWORD"] = ""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from backend.app.db import crud
from backend.app.db.session import get_async_db, init_db
from backend.app.security.password_hash import hash_password
from backend.app.settings import Settings

# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]

DJ_USERNAME = "dj"
DJ_PASSWORD = "spin-the-decks"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta


@pytest.fixture
def dj_credentials():
    return DJ_USERNAME, DJ_PASSWORD


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 6, 1, 21, 0, tzinfo=timezone.utc))


@pytest.fixture
def test_settings() -> Settings:
    """Settings with fast client hints and karaoke off."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret-key",
        karaoke_enabled=False,
        ban_popup_seconds=5,
        queue_poll_seconds=3,
        status_poll_seconds=10,
    )


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def dj_user(session_factory):
    """A DJ account with known credentials."""
    async with session_factory() as session:
        user = await crud.create_dj_user(session, DJ_USERNAME, hash_password(DJ_PASSWORD))
        await session.commit()
        return user


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the test database wired in."""
    from backend.app.main import create_app

    app = create_app()

    async def override_get_async_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_db] = override_get_async_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def dj_client(client, dj_user) -> AsyncClient:
    """HTTP client holding a DJ session cookie."""
    response = await client.post(
        "/api/auth/dj", json={"username": DJ_USERNAME, "password": DJ_PASSWORD}
    )
    assert response.status_code == 200
    return client
