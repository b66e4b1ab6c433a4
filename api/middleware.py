# ============================================================================
# File: api/middleware.py
# ============================================================================

import logging
import re
import time
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from core.logging import log_event

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
LATENCY_HEADER = "X-API-Latency-ms"

# Caller ids are echoed into headers and log lines
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


def resolve_request_id(incoming: Optional[str]) -> str:
    """Reuse a well-formed caller id, otherwise mint a fresh one"""
    if incoming and _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id and its handling latency.

    The id is exposed on ``request.state.request_id`` and echoed in the
    X-Request-ID response header; one ``http.request`` event is logged
    per request.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)

        latency_ms = int((time.perf_counter() - started) * 1000)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[LATENCY_HEADER] = str(latency_ms)

        log_event(
            logger,
            "http.request",
            logging.DEBUG,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            latencyMs=latency_ms,
            requestId=request_id,
        )
        return response
