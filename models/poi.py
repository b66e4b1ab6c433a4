from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Index
from sqlalchemy.dialects.postgresql import JSONB, UUID

from models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PoiDocument(Base):
    """
    One stored POI per upstream external id.

    Design:
    - external_id is the natural key; every upsert targets its unique index
    - id is the surrogate written on first insert and never replaced
    - raw keeps the fetched payload verbatim (JSONB) for forward-compatibility
    - last_updated and raw always reflect the latest fetch
    """
    __tablename__ = "pois"

    id = Column(UUID(as_uuid=False), primary_key=True)
    external_id = Column(BigInteger, nullable=False)

    last_updated = Column(DateTime(timezone=True), nullable=True)
    raw = Column(JSONB, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_pois_external_id", "external_id", unique=True),
        Index("idx_pois_last_updated", "last_updated"),
    )
