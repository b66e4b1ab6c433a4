"""
Retry with exponential backoff and jitter.

Knows nothing about HTTP: callers supply a ``should_retry`` decision that
returns either a bool or a RetryDecision carrying an explicit delay.
"""

import asyncio
import math
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    delay_ms: Optional[float] = None


@dataclass(frozen=True)
class RetryAttempt:
    """Passed to ``on_retry`` after the backoff sleep"""
    attempt: int
    max_attempts: int
    delay_ms: int
    error: BaseException


@dataclass(frozen=True)
class GiveUp:
    """Passed to ``on_give_up`` before the error propagates"""
    attempt: int
    max_attempts: int
    error: BaseException


ShouldRetry = Callable[[BaseException], Union[bool, RetryDecision]]


def _normalize(decision: Union[bool, RetryDecision]) -> RetryDecision:
    if isinstance(decision, RetryDecision):
        return decision
    return RetryDecision(retry=bool(decision))


def _valid_delay(delay_ms: Any) -> Optional[float]:
    if isinstance(delay_ms, bool) or not isinstance(delay_ms, (int, float)):
        return None
    if not math.isfinite(delay_ms) or delay_ms < 0:
        return None
    return float(delay_ms)


class RetryPolicy:
    """
    Bounded retries around a single async call.

    Attempt 0 is the first try; up to ``retries`` further attempts follow, so
    ``retries=5`` allows six calls in total.

    Attributes:
        retries: additional attempts after the first try
        min_delay_ms: base of the exponential backoff
        max_delay_ms: cap for computed and server-supplied delays
        jitter_ratio: upper bound of jitter as a fraction of the backoff
    """

    def __init__(
        self,
        retries: int,
        min_delay_ms: float,
        max_delay_ms: float,
        should_retry: ShouldRetry,
        jitter_ratio: float = 0.2,
        random_fn: Callable[[], float] = random.random,
        on_retry: Optional[Callable[[RetryAttempt], None]] = None,
        on_give_up: Optional[Callable[[GiveUp], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if retries < 0:
            raise ValueError("retries must be >= 0")
        self.retries = retries
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self.should_retry = should_retry
        self.jitter_ratio = min(1.0, max(0.0, jitter_ratio))
        self.random_fn = random_fn
        self.on_retry = on_retry
        self.on_give_up = on_give_up
        self.sleep = sleep

    def derive(self, **overrides: Any) -> "RetryPolicy":
        """Copy of this policy with some options replaced"""
        options = {
            "retries": self.retries,
            "min_delay_ms": self.min_delay_ms,
            "max_delay_ms": self.max_delay_ms,
            "should_retry": self.should_retry,
            "jitter_ratio": self.jitter_ratio,
            "random_fn": self.random_fn,
            "on_retry": self.on_retry,
            "on_give_up": self.on_give_up,
            "sleep": self.sleep,
        }
        options.update(overrides)
        return RetryPolicy(**options)

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def backoff_ms(self, attempt: int, decision: RetryDecision) -> int:
        """Delay before the next try, jitter included"""
        custom = _valid_delay(decision.delay_ms)
        if custom is not None:
            backoff = min(self.max_delay_ms, custom)
        else:
            backoff = min(self.max_delay_ms, self.min_delay_ms * (2 ** attempt))

        rand = min(1.0, max(0.0, self.random_fn()))
        jitter = math.floor(backoff * self.jitter_ratio * rand)
        return int(backoff + jitter)

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await fn()
            except Exception as e:
                decision = _normalize(self.should_retry(e))
                if attempt >= self.retries or not decision.retry:
                    if self.on_give_up is not None:
                        self.on_give_up(GiveUp(attempt + 1, self.max_attempts, e))
                    raise

                wait_ms = self.backoff_ms(attempt, decision)
                await self.sleep(wait_ms / 1000)
                if self.on_retry is not None:
                    self.on_retry(RetryAttempt(attempt + 1, self.max_attempts, wait_ms, e))
                attempt += 1


async def retry(fn: Callable[[], Awaitable[T]], **options: Any) -> T:
    """Run ``fn`` under a one-off RetryPolicy built from ``options``"""
    return await RetryPolicy(**options).execute(fn)
