# ============================================================================
# File: ingestion/runner.py
# Description: Paginated POI import with skip/abort error handling
# ============================================================================
"""
Import Runner - drives the offset cursor over the remote catalog.

Per page:
1. Fetch the page at (offset, page_size)
2. Transform every record through the ConcurrencyLimiter
3. Partition outcomes in index order: documents, skips, first fatal
4. Upsert surviving documents
5. Advance offset by the raw page length

The run stops on an empty page, a short page, or after ``max_pages`` pages.
Offsets never depend on validation outcomes, so a re-run from the same
start offset reproduces identical page boundaries.
"""

import logging
from typing import Callable, List, Sequence, Tuple

from core.exceptions import ImportFatalError
from core.logging import log_event
from ingestion.base import FetchPageParams, PoiRepository, PoiSource
from ingestion.concurrency import ConcurrencyLimiter, Outcome
from ingestion.error_handler import (
    Fatal,
    ImportErrorContext,
    Skip,
    classify_transform_failure,
    wrap_repository_failure,
)
from ingestion.summary import RunSummaryTracker
from ingestion.transformers.poi_transformer import transform_poi, try_extract_external_id
from schemas.importer import ImportConfig, RunSummary
from schemas.poi import PoiDoc, RawPoi

logger = logging.getLogger(__name__)


def partition_outcomes(
    raw: Sequence[RawPoi],
    outcomes: Sequence[Outcome],
    page: int,
    offset: int,
    page_size: int,
) -> Tuple[List[PoiDoc], List[Skip]]:
    """
    Reduce a page's transform outcomes into documents and skips.

    Raises:
        ImportFatalError: for the first non-validation failure in index order
    """
    docs: List[PoiDoc] = []
    skips: List[Skip] = []

    for index, outcome in enumerate(outcomes):
        if outcome.ok:
            docs.append(outcome.value)
            continue

        context = ImportErrorContext(
            page=page,
            offset=offset,
            page_size=page_size,
            index=index,
            external_id=try_extract_external_id(raw[index]),
        )
        decision = classify_transform_failure(outcome.error, context)
        if isinstance(decision, Fatal):
            raise decision.error
        skips.append(decision)

    return docs, skips


class ImportRunner:
    """
    Orchestrates one paginated import run.

    Responsibilities:
    - Drive the offset cursor and stop conditions
    - Fan record transforms through a bounded limiter
    - Skip invalid records, abort on anything else
    - Hand surviving documents to the repository page by page
    - Track run counters and emit the end-of-run event
    """

    def __init__(
        self,
        client: PoiSource,
        repository: PoiRepository,
        config: ImportConfig,
        transform: Callable[[RawPoi], PoiDoc] = transform_poi,
    ):
        self.client = client
        self.repository = repository
        self.config = config
        self.transform = transform

    async def run(self) -> RunSummary:
        """
        Run the import to completion.

        Returns:
            RunSummary of the run

        Raises:
            ImportFatalError: unexpected transform failure or failed batch write
            Exception: fetch failures once the client's retries are exhausted
        """
        config = self.config
        tracker = RunSummaryTracker()
        limiter = ConcurrencyLimiter(config.concurrency)
        offset = config.start_offset

        log_event(
            logger,
            "import.started",
            startOffset=config.start_offset,
            pageSize=config.page_size,
            maxPages=config.max_pages,
            concurrency=config.concurrency,
            dataset=config.dataset,
            modifiedSince=config.modified_since,
        )

        try:
            while tracker.pages_processed < config.max_pages:
                page = tracker.next_page_number()
                raw = await self.client.fetch_page(
                    FetchPageParams(
                        offset=offset,
                        limit=config.page_size,
                        modified_since=config.modified_since,
                        dataset=config.dataset,
                    )
                )

                if len(raw) == 0:
                    break

                outcomes = await limiter.run([self._transform_task(record) for record in raw])
                docs, skips = partition_outcomes(raw, outcomes, page, offset, config.page_size)

                for skip in skips:
                    tracker.add_skipped(skip.code)
                    log_event(logger, skip.log["event"], level=logging.WARNING,
                              **{k: v for k, v in skip.log.items() if k != "event"})

                if docs:
                    try:
                        result = await self.repository.upsert_many(docs)
                    except Exception as e:
                        raise wrap_repository_failure(
                            e, ImportErrorContext(page=page, offset=offset, page_size=config.page_size)
                        ) from e
                    tracker.add_imported(len(docs), result)

                offset += len(raw)
                tracker.add_processed_page()

                log_event(
                    logger,
                    "import.page_processed",
                    level=logging.DEBUG,
                    page=page,
                    fetched=len(raw),
                    imported=len(docs),
                    skipped=len(skips),
                    nextOffset=offset,
                )

                # Last page
                if len(raw) < config.page_size:
                    break

        except ImportFatalError as e:
            log_event(
                logger,
                "import.aborted",
                level=logging.ERROR,
                error=e.to_dict(),
                **tracker.summary().to_event_fields(),
            )
            raise

        except Exception as e:
            log_event(
                logger,
                "import.aborted",
                level=logging.ERROR,
                error={"error_type": type(e).__name__, "message": str(e)},
                nextOffset=offset,
                **tracker.summary().to_event_fields(),
            )
            raise

        summary = tracker.summary()
        log_event(logger, "import.completed", **summary.to_event_fields())
        return summary

    def _transform_task(self, record: RawPoi) -> Callable[[], PoiDoc]:
        def task() -> PoiDoc:
            return self.transform(record)
        return task


async def import_pois(client: PoiSource, repository: PoiRepository, config: ImportConfig) -> RunSummary:
    """Run one import with the default transform"""
    return await ImportRunner(client, repository, config).run()
