"""
Composition root: wire settings, client, repository and runner for one run
"""

import logging
from typing import Optional

from core.config import Settings, resolve_runtime_config
from core.config import settings as default_settings
from ingestion.base import PoiRepository, PoiSource
from ingestion.extractors.ocm_client import OpenChargeMapClient
from ingestion.loaders.postgres_loader import PostgresPoiRepository
from ingestion.runner import ImportRunner
from schemas.importer import RunSummary

logger = logging.getLogger(__name__)


async def run_import(
    settings: Optional[Settings] = None,
    client: Optional[PoiSource] = None,
    repository: Optional[PoiRepository] = None,
) -> RunSummary:
    """
    Resolve configuration and run one import.

    Configuration is validated before anything is opened or fetched.
    Injected collaborators are owned by the run from the moment of the
    call, so they are released on every exit path, a configuration
    failure included.
    """
    settings = settings or default_settings

    try:
        runtime = resolve_runtime_config(settings)

        if client is None:
            client = OpenChargeMapClient(
                base_url=settings.OCM_BASE_URL,
                api_key=settings.OCM_API_KEY,
                timeout_ms=runtime.timeout_ms,
            )
        if repository is None:
            repository = PostgresPoiRepository(settings.DATABASE_URL)

        runner = ImportRunner(client, repository, runtime.import_config)
        return await runner.run()
    finally:
        try:
            if repository is not None:
                await repository.close()
        finally:
            if client is not None:
                await client.aclose()
