"""
Pydantic schemas for canonical POI documents and repository write results
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

RawPoi = Dict[str, Any]


class PoiDoc(BaseModel):
    """
    Canonical document stored per POI.

    ``external_id`` is the natural key used for idempotent storage. ``id`` is a
    surrogate assigned on every transform; the repository keeps the one
    written on first insert.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    external_id: int = Field(..., gt=0)
    last_updated: Optional[datetime] = None
    raw: RawPoi


class UpsertResult(BaseModel):
    """Counts reported by a bulk upsert"""

    upserted: int = 0
    modified: int = 0
