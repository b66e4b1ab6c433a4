"""
Pydantic schemas for import run configuration and the end-of-run summary
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_SAFE_INTEGER = 2 ** 53 - 1

# Inclusive (min, max) caps enforced before any fetch
IMPORTER_CAPS: Dict[str, tuple] = {
    "concurrency": (1, 50),
    "page_size": (1, 500),
    "max_pages": (1, 100_000),
    "start_offset": (0, MAX_SAFE_INTEGER),
}

RUNTIME_CAPS: Dict[str, tuple] = {
    "timeout_ms": (1_000, 30_000),
}


class ImportConfig(BaseModel):
    """
    Resolved configuration for one import run.

    Built once per run and immutable afterwards.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    concurrency: int = Field(default=10, ge=1, le=50)
    page_size: int = Field(default=100, ge=1, le=500)
    max_pages: int = Field(default=1000, ge=1, le=100_000)
    start_offset: int = Field(default=0, ge=0, le=MAX_SAFE_INTEGER)
    dataset: Optional[str] = None
    modified_since: Optional[str] = None

    @field_validator("dataset", "modified_since", mode="before")
    @classmethod
    def blank_as_unset(cls, v):
        """Treat blank strings as an unset value"""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("modified_since")
    @classmethod
    def check_timestamp(cls, v):
        """modified_since must parse as an ISO-8601 timestamp"""
        if v is None:
            return v
        try:
            datetime.fromisoformat(v.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"not an ISO-8601 timestamp: {v!r}")
        return v


class RuntimeConfig(BaseModel):
    """Import configuration plus the per-attempt remote timeout"""

    model_config = ConfigDict(frozen=True)

    import_config: ImportConfig
    timeout_ms: int = Field(default=8000, ge=1_000, le=30_000)


class RunSummary(BaseModel):
    """
    Counters for one import run.

    ``total`` counts documents handed to the repository; skipped records are
    tracked per skip code.
    """

    total: int = 0
    pages_processed: int = 0
    upserted: int = 0
    modified: int = 0
    skipped_by_code: Dict[str, int] = Field(default_factory=dict)

    @property
    def skipped_invalid(self) -> int:
        return self.skipped_by_code.get("invalid_record", 0)

    def to_event_fields(self) -> Dict[str, object]:
        """Fields of the ``import.completed`` event"""
        return {
            "total": self.total,
            "pagesProcessed": self.pages_processed,
            "skippedInvalid": self.skipped_invalid,
            "skippedByCode": dict(self.skipped_by_code),
            "upserted": self.upserted,
            "modified": self.modified,
        }
