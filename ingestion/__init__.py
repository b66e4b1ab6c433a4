"""
Import pipeline for OpenChargeMap points of interest.

Modules:
    base: Abstract remote source and repository boundaries, batch dedupe
    concurrency: Bounded all-settled task runner
    retry: Retry policy with exponential backoff and jitter
    error_handler: Skip-vs-fatal classification of failures
    summary: Per-run counters
    runner: Pagination driver orchestrating fetch, transform and upsert
    composition: Wires configuration, client and repository for one run

Subpackages:
    extractors: OpenChargeMap HTTP client
    transformers: Raw record to canonical document transform
    loaders: PostgreSQL repository with idempotent upserts

Architecture:
    One page is fetched, transformed and persisted before the next fetch.
    Within a page, transforms run concurrently up to the configured limit.

    1. Fetch - one page per request, transient failures retried in the client
    2. Transform - invalid records are skipped, unexpected failures abort
    3. Load - documents upserted by external id, surrogate ids preserved

Usage:
    from ingestion.composition import run_import

    summary = await run_import()
    print(f"Imported {summary.total} POIs in {summary.pages_processed} pages")

Error Handling:
    InvalidPoiError is the only recoverable failure. Every other error
    propagates as ImportFatalError or as the fetch error itself.
"""

__all__ = [
    "base",
    "concurrency",
    "retry",
    "error_handler",
    "summary",
    "runner",
    "composition",
]
