"""
Script to run one POI import from the remote catalog into PostgreSQL
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, ingestion, etc.
sys.path.append(os.getcwd())

from core.exceptions import ConfigurationError, ImporterException
from core.logging import setup_logging
from ingestion.composition import run_import

logger = logging.getLogger(__name__)


def main() -> int:
    setup_logging()

    try:
        summary = asyncio.run(run_import())
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e.message}")
        return 2
    except ImporterException as e:
        logger.error("Import failed", extra={"event_payload": {"event": "import.failed", **e.to_dict()}})
        return 1
    except KeyboardInterrupt:
        logger.warning("Import aborted")
        return 130
    except Exception as e:
        logger.exception(f"Import failed: {e}")
        return 1

    logger.info(f"Import finished: {summary.total} POIs, {summary.pages_processed} pages")
    return 0


if __name__ == "__main__":
    sys.exit(main())
