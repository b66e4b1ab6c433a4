"""
Per-run counters for observability and the end-of-run report
"""

from typing import Dict

from schemas.importer import RunSummary
from schemas.poi import UpsertResult


class RunSummaryTracker:
    """
    Accumulates page and record counters for one run.

    Created fresh by the runner for every run and mutated only by it. All
    counters only ever grow.
    """

    def __init__(self):
        self._total = 0
        self._pages_processed = 0
        self._upserted = 0
        self._modified = 0
        self._skipped_by_code: Dict[str, int] = {}

    @property
    def pages_processed(self) -> int:
        return self._pages_processed

    def next_page_number(self) -> int:
        """1-based number of the page about to be fetched"""
        return self._pages_processed + 1

    def add_imported(self, count: int, result: UpsertResult = None):
        if count < 0:
            raise ValueError("count must be >= 0")
        self._total += count
        if result is not None:
            self._upserted += max(0, result.upserted)
            self._modified += max(0, result.modified)

    def add_processed_page(self):
        self._pages_processed += 1

    def add_skipped(self, code: str) -> int:
        """Count one skipped record; returns the running count for ``code``"""
        self._skipped_by_code[code] = self._skipped_by_code.get(code, 0) + 1
        return self._skipped_by_code[code]

    def summary(self) -> RunSummary:
        """Snapshot of the counters; later updates do not affect it"""
        return RunSummary(
            total=self._total,
            pages_processed=self._pages_processed,
            upserted=self._upserted,
            modified=self._modified,
            skipped_by_code=dict(self._skipped_by_code),
        )
