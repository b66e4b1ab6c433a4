"""
Pydantic schemas for validation and serialization.

Schemas:
    importer: Import run configuration and run summary
    poi: Raw records, canonical POI documents and upsert counts
    api: HTTP response models

Usage:
    from schemas.importer import ImportConfig, RunSummary
    from schemas.poi import PoiDoc

Validation:
    Configuration and document models are frozen; invalid values raise
    pydantic.ValidationError at construction time.
"""

__all__ = [
    "importer",
    "poi",
    "api",
]
