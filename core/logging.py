"""
Logging configuration and structured event helpers
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from core.config import settings

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
SECRET_QUERY_PARAMS = {"key", "apikey", "api_key", "token", "access_token", "secret", "password"}


class JsonLineFormatter(logging.Formatter):
    """Render each record as one JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        event_payload = getattr(record, "event_payload", None)
        if event_payload:
            payload.update(event_payload)
        else:
            payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None):
    """Configure application logging"""

    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if (log_format or settings.LOG_FORMAT).lower() == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    # Set SQLAlchemy and httpx logging to WARNING to reduce noise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {level_name} level")


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> Dict[str, Any]:
    """
    Emit a structured event.

    The message is the JSON payload itself so text-formatted logs stay
    greppable; the JSON formatter merges the payload into the line.
    """
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str), extra={"event_payload": payload})
    return payload


def sanitize_url(url: str) -> str:
    """Strip credentials and redact secret-looking query parameters"""
    parts = urlsplit(str(url))
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"

    query = [
        (k, "REDACTED" if k.lower() in SECRET_QUERY_PARAMS else v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit((parts.scheme, netloc, parts.path, urlencode(query), ""))
