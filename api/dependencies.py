"""
Shared FastAPI dependencies
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session scoped to one request"""
    async for session in get_session():
        yield session
