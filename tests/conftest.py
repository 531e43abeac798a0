"""
Discory Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the whole suite.
How:   Every test gets its own in-memory SQLite database (aiosqlite) with the
       full schema created from the ORM metadata. Web Push and Socket.IO
       delivery are replaced by AsyncMocks so no test leaves the process.

Fixture Hierarchy (all function-scoped):
    engine ──▶ db                  session for service-level tests
           └─▶ client              HTTPX AsyncClient over the FastAPI app,
                                   get_db_session overridden to `engine`
    fanout                         mocks for push_service.send and
                                   realtime.emit_notification (autouse)
    make_account / make_vinyl      row factories on `db`
    auth_header                    builds `Authorization: Bearer <jwt>`
"""

import os

# Override settings for testing BEFORE any discory imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["VAPID_PUBLIC_KEY"] = ""
os.environ["VAPID_PRIVATE_KEY"] = ""
os.environ["VAPID_EMAIL"] = ""
os.environ["DISCOGS_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import discory.models  # noqa: F401  (registers every table on Base.metadata)
from discory.database import Base, build_engine, get_db_session
from discory.models.account import Account
from discory.models.vinyl import Vinyl
from discory.services.auth_service import auth_service

TEST_PASSWORD = "correct horse battery"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database with the full schema."""
    test_engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Delivery mocks
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture(autouse=True)
def fanout():
    """
    Replaces Web Push and Socket.IO delivery for every test.

    Usage:
        async def test_x(fanout):
            ...
            fanout.realtime.assert_awaited_once()
    """
    with patch(
        "discory.services.notification_service.push_service.send", new_callable=AsyncMock
    ) as push, patch(
        "discory.services.notification_service.realtime.emit_notification",
        new_callable=AsyncMock,
    ) as realtime:
        yield SimpleNamespace(push=push, realtime=realtime)


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def make_account(db):
    """
    Inserts an account and flushes it.

    Usage:
        alice = await make_account("alice")
        bob = await make_account("bob", is_public=False)
    """

    async def _make(username: str, is_public: bool = True, bio: Optional[str] = None) -> Account:
        account = Account(
            email=f"{username}@example.com",
            username=username,
            password_hash=auth_service.hash_password(TEST_PASSWORD),
            is_public=is_public,
            bio=bio,
        )
        db.add(account)
        await db.flush()
        return account

    return _make


@pytest.fixture
def make_vinyl(db):
    """Inserts an item; pass `minute` to get a deterministic date_added."""

    async def _make(
        owner: Account,
        title: str = "Kind of Blue",
        artist: str = "Miles Davis",
        genre: Optional[str] = "Jazz",
        minute: int = 0,
        **fields,
    ) -> Vinyl:
        vinyl = Vinyl(
            user_id=owner.id,
            title=title,
            artist=artist,
            genre=genre,
            date_added=datetime(2024, 1, 1, 12, minute, tzinfo=timezone.utc),
            **fields,
        )
        db.add(vinyl)
        await db.flush()
        return vinyl

    return _make


@pytest.fixture
def auth_header():
    def _header(account: Account) -> dict:
        return {"Authorization": f"Bearer {auth_service.create_token(account.id, account.email)}"}

    return _header


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    Each request gets its own session on the test database and commits on
    success, like get_db_session does in production.
    """
    from discory.main import fastapi_app

    async def _test_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db_session] = _test_session
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    fastapi_app.dependency_overrides.clear()
