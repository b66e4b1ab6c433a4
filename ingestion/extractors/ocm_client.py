"""
OpenChargeMap HTTP client with per-attempt timeouts and retry/backoff.

Retry policy for remote calls:
- request timeout: retry
- HTTP 429: retry, honouring a valid Retry-After (seconds) when present
- HTTP 5xx: retry
- any other HTTP 4xx: fail after one attempt
- error without a status code (connection reset, DNS, ...): retry
- 2xx body that is not a JSON array: fail, never retried
"""

import asyncio
import logging
import re
from typing import Any, Callable, Dict, List, Optional

import httpx

from core.exceptions import RemoteRequestError, RemoteResponseFormatError
from core.logging import log_event, sanitize_url
from ingestion.base import FetchPageParams, PoiSource
from ingestion.retry import GiveUp, RetryAttempt, RetryDecision, RetryPolicy
from schemas.poi import RawPoi

logger = logging.getLogger(__name__)

MAX_RETRY_AFTER_SECONDS = 300
_DIGITS = re.compile(r"^[0-9]+$")

DEFAULT_RETRIES = 5
DEFAULT_MIN_DELAY_MS = 250
DEFAULT_MAX_DELAY_MS = 5000


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Retry-After as whole seconds, or None when absent or not a small integer"""
    if value is None:
        return None
    text = value.strip()
    if not _DIGITS.match(text):
        return None
    seconds = int(text)
    if seconds > MAX_RETRY_AFTER_SECONDS:
        return None
    return seconds


def _chain(first: Callable, second: Optional[Callable]) -> Callable:
    if second is None:
        return first

    def both(ctx):
        first(ctx)
        second(ctx)
    return both


def should_retry_remote_error(error: BaseException) -> RetryDecision:
    """Retry decision for a failed page fetch"""
    if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError)):
        return RetryDecision(retry=True)

    if isinstance(error, RemoteResponseFormatError):
        return RetryDecision(retry=False)

    status = getattr(error, "status_code", None)
    if status is None:
        # No status code: raw network failure
        return RetryDecision(retry=True)

    if status == 429:
        retry_after = getattr(error, "retry_after", None)
        if retry_after is not None:
            return RetryDecision(retry=True, delay_ms=retry_after * 1000)
        return RetryDecision(retry=True)

    if status >= 500:
        return RetryDecision(retry=True)

    return RetryDecision(retry=False)


class OpenChargeMapClient(PoiSource):
    """
    Fetch pages of POIs from ``{base_url}/poi``.

    Features:
    - API key sent as ``X-API-Key`` header (never in the URL)
    - Per-attempt timeout (httpx timeout plus an asyncio deadline)
    - Retry with exponential backoff, jitter and Retry-After support
    - Structured ``http.retry`` / ``http.give_up`` events with sanitized URLs
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_ms: int = 8000,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_ms = timeout_ms
        self.transport = transport
        policy = retry_policy or RetryPolicy(
            retries=DEFAULT_RETRIES,
            min_delay_ms=DEFAULT_MIN_DELAY_MS,
            max_delay_ms=DEFAULT_MAX_DELAY_MS,
            should_retry=should_retry_remote_error,
        )
        self.retry_policy = policy.derive(
            on_retry=_chain(self._log_retry, policy.on_retry),
            on_give_up=_chain(self._log_give_up, policy.on_give_up),
        )
        self._client: Optional[httpx.AsyncClient] = None
        self._last_url: str = self.base_url

    @property
    def page_url(self) -> str:
        return f"{self.base_url}/poi"

    async def __aenter__(self):
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.api_key:
                headers["X-API-Key"] = self.api_key
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_ms / 1000),
                headers=headers,
                transport=self.transport,
            )
        return self._client

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def build_query(params: FetchPageParams) -> Dict[str, Any]:
        query: Dict[str, Any] = {"limit": params.limit, "offset": params.offset}
        if params.modified_since:
            query["modifiedsince"] = params.modified_since
        if params.dataset:
            query["dataset"] = params.dataset
        return query

    async def fetch_page(self, params: FetchPageParams) -> List[RawPoi]:
        """
        Fetch one page of raw records.

        Raises:
            RemoteRequestError: non-2xx after retries are exhausted (or 4xx)
            RemoteResponseFormatError: body is not a JSON array
            httpx.HTTPError / asyncio.TimeoutError: transport failure after retries
        """
        client = self._ensure_client()
        query = self.build_query(params)

        async def attempt() -> List[RawPoi]:
            return await self._get_page(client, query)

        return await self.retry_policy.execute(attempt)

    async def _get_page(self, client: httpx.AsyncClient, query: Dict[str, Any]) -> List[RawPoi]:
        request = client.build_request("GET", self.page_url, params=query)
        self._last_url = sanitize_url(str(request.url))

        response = await asyncio.wait_for(client.send(request), timeout=self.timeout_ms / 1000)

        if not response.is_success:
            retry_after = None
            if response.status_code == 429:
                retry_after = parse_retry_after(response.headers.get("Retry-After"))
            raise RemoteRequestError(
                f"OCM request failed: {response.status_code}",
                status_code=response.status_code,
                url=self._last_url,
                retry_after=retry_after,
                body=response.text[:500],
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteResponseFormatError(
                "OCM response is not valid JSON",
                context={"url": self._last_url},
                original_exception=e
            )

        if not isinstance(data, list):
            raise RemoteResponseFormatError(
                "OCM response is not an array",
                context={"url": self._last_url, "type": type(data).__name__}
            )
        return data

    def _log_retry(self, ctx: RetryAttempt):
        log_event(
            logger,
            "http.retry",
            level=logging.WARNING,
            status=getattr(ctx.error, "status_code", None),
            url=self._last_url,
            attempt=ctx.attempt,
            maxAttempts=ctx.max_attempts,
            delayMs=ctx.delay_ms,
            error=type(ctx.error).__name__,
        )

    def _log_give_up(self, ctx: GiveUp):
        log_event(
            logger,
            "http.give_up",
            level=logging.ERROR,
            status=getattr(ctx.error, "status_code", None),
            url=self._last_url,
            attempt=ctx.attempt,
            maxAttempts=ctx.max_attempts,
            error=type(ctx.error).__name__,
        )
