"""
API response schemas
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="healthy or unhealthy")
    timestamp: datetime = Field(default_factory=_utcnow)
    database_connected: bool
    poi_count: Optional[int] = Field(None, description="Stored POI documents, when the database is reachable")
    request_id: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "database_connected": True,
                "poi_count": 1500,
                "request_id": "3f0c2a4e-8a57-4b9e-9f6e-2d7c1f0b5a11"
            }
        }
    }
