"""
Core utilities and configuration for the POI importer.

This package provides foundational components used throughout the import
pipeline:

Modules:
    config: Settings loaded from the environment and run configuration resolution
    database: Async SQLAlchemy engine and session management
    exceptions: Exception hierarchy separating skippable and fatal failures
    logging: Logging configuration and structured JSON events

Usage:
    from core.config import settings, resolve_runtime_config
    from core.database import get_session
    from core.exceptions import InvalidPoiError, ImportFatalError
    from core.logging import setup_logging, log_event

Example:
    # Initialize logging
    setup_logging()

    # Resolve caps-checked run configuration
    runtime = resolve_runtime_config(settings)
"""

__all__ = [
    "config",
    "database",
    "exceptions",
    "logging",
]
