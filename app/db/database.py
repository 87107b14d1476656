"""Database connection and session management."""
import logging
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.core.config import settings
from app.db.models import Base

logger = logging.getLogger(__name__)


def get_async_database_url(url: str) -> str:
    """Convert postgresql:// and sqlite:// URLs to their async drivers."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


database_url = get_async_database_url(settings.database_url)

engine = create_async_engine(
    database_url,
    echo=False,
    future=True,
    # aiosqlite runs the connection on its own thread
    connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Create the orders and conversations tables if they are missing."""
    logger.info(f"[DB] Ensuring tables exist - Backend: {engine.url.get_backend_name()}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    """Close pooled connections on shutdown."""
    await engine.dispose()
    logger.info("[DB] Connection pool closed")


async def check_db(db: AsyncSession) -> bool:
    """Whether the order store answers a trivial query."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"[DB] Health query failed - Error: {type(e).__name__}: {str(e)}")
        return False
    return True


async def get_db() -> AsyncSession:
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
