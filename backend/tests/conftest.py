"""Shared pytest fixtures configured to use SQLite in-memory for unit tests."""

import logging
import os
from uuid import uuid4

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# the app lifespan must not touch PostgreSQL during tests
os.environ.setdefault("MARKNOTE_SKIP_LIFESPAN_DB", "1")

from marknote.config import Settings  # noqa: E402
from marknote.core.models import BaseModel, Note, User  # noqa: E402
from marknote.security.jwt import create_access_token  # noqa: E402
from marknote.security.password import hash_password  # noqa: E402

# Silence verbose DEBUG logs from aiosqlite to keep test output readable
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


@pytest.fixture
def test_settings():
    """Settings for tests: SQLite in-memory, no idle pings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret-key",
        debug=True,
        realtime_idle_ping_interval_seconds=0,
    )


@pytest.fixture
async def test_engine(test_settings):
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
        poolclass=StaticPool,  # keep the same memory DB across connections
        connect_args={"check_same_thread": False},
    )

    # SQLite only enforces ON DELETE CASCADE with this pragma
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def test_session(test_engine):
    session_maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture
def test_user_data():
    return {
        "name": "Test User",
        "email": f"user_{uuid4().hex[:8]}@example.com",
        "password": "TestPassword123!",
    }


@pytest.fixture
async def test_user(test_session, test_user_data):
    user = User(
        name=test_user_data["name"],
        email=test_user_data["email"],
        password_hash=hash_password(test_user_data["password"]),
        is_active=True,
    )
    test_session.add(user)
    await test_session.commit()
    await test_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user):
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}


@pytest.fixture
async def test_note(test_session, test_user):
    note = Note(
        title="Test Note",
        content="This is a test note content",
        tags=["test", "example"],
        pinned=False,
        owner_id=test_user.id,
    )
    test_session.add(note)
    await test_session.commit()
    await test_session.refresh(note)
    return note


@pytest.fixture
def mock_redis(monkeypatch):
    """In-memory stand-in for the shared Redis client."""

    class MockRedisClient:
        def __init__(self):
            self.storage = {}
            self.connected = True

        async def connect(self):
            self.connected = True

        async def ping(self):
            return self.connected

        async def add_to_blacklist(self, jti, expire):
            self.storage[f"blacklist:{jti}"] = expire
            return True

        async def is_token_blacklisted(self, jti):
            return f"blacklist:{jti}" in self.storage

    client = MockRedisClient()
    import marknote.security.jwt as jwt_module

    monkeypatch.setattr(jwt_module, "get_redis_client", lambda: client)
    return client
