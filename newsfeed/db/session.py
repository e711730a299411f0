"""
Engine and session wiring.

Request handlers get a session through `get_db`; notification jobs that run
after the response open their own sessions from `get_session_factory`.
"""
from typing import AsyncGenerator
import logging

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from newsfeed.config import settings
from newsfeed.db.base import Base

logger = logging.getLogger(__name__)

def build_engine(url: str) -> AsyncEngine:
    """sqlite (tests, local runs) shares one connection; postgres gets a pooled engine"""
    if make_url(url).get_backend_name() == "sqlite":
        return create_async_engine(
            url,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
    )

engine = build_engine(settings.database_url)

# Loaded objects stay usable after commit, responses are built from them
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session, committed when the handler succeeds"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise

def get_session_factory() -> async_sessionmaker:
    """Dependency handing background work a factory for its own sessions"""
    return AsyncSessionLocal

async def init_db():
    """Create any missing tables"""
    import newsfeed.models  # noqa: F401  registers every table on Base.metadata
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready: {len(Base.metadata.tables)} tables")

async def close_db():
    await engine.dispose()
    logger.info("Database connections closed")
