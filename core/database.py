"""
Database engine and session management with SQLAlchemy async
"""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from core.config import settings
import logging

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker] = None


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create an async engine; no connection is opened until first use"""
    return create_async_engine(
        database_url or settings.DATABASE_URL,
        echo=False,
        pool_pre_ping=True,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


def get_session_maker() -> async_sessionmaker:
    """Process-wide session factory used by the HTTP service"""
    global _engine, _session_maker
    if _session_maker is None:
        _engine = create_engine()
        _session_maker = create_session_maker(_engine)
    return _session_maker


async def dispose_engine():
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_maker = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session"""
    async with get_session_maker()() as session:
        yield session
