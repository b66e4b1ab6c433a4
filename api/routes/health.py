"""
Health check endpoint with database and POI store status
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select, text
from api.dependencies import get_db
from schemas.api import HealthCheckResponse
from models.poi import PoiDocument
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Number of stored POI documents
    - Request metadata
    """

    db_connected = False
    poi_count = None

    try:
        await db.execute(text("SELECT 1"))
        db_connected = True
    except Exception as e:
        logger.error(f"Database connection failed: {str(e)}")

    if db_connected:
        try:
            result = await db.execute(select(func.count()).select_from(PoiDocument))
            poi_count = result.scalar_one()
        except Exception as e:
            logger.error(f"Failed to count POI documents: {str(e)}")

    return HealthCheckResponse(
        status="healthy" if db_connected else "unhealthy",
        database_connected=db_connected,
        poi_count=poi_count,
        request_id=getattr(request.state, "request_id", None),
    )
