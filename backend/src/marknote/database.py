# Async engine and per-request sessions
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import get_settings
from .core.models import BaseModel

settings = get_settings()

# pre-ping so sockets held open for a long time do not get a dead connection
engine = create_async_engine(
    settings.database_url, echo=settings.database_echo, pool_pre_ping=True
)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db_session():
    """Yield a session for one request (or one WebSocket connection)."""
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)


async def dispose_engine():
    """Close pooled connections on shutdown."""
    await engine.dispose()


def get_session_factory() -> async_sessionmaker:
    """Session factory for long-lived handlers that open short sessions per query."""
    return AsyncSessionLocal
