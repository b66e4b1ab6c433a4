"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class
    poi: PoiDocument, the canonical POI document keyed by external id

Database Schema:
    The POI table uses PostgreSQL JSONB to keep the upstream payload verbatim
    and a unique index on external_id as the idempotent upsert target.

Usage:
    from models.base import Base
    from models.poi import PoiDocument
"""

__all__ = [
    "base",
    "poi",
]
