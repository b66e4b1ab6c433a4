"""
Bounded-concurrency runner with all-settled semantics.

A fixed pool of workers pulls tasks from a FIFO queue, so at most
``concurrency`` tasks are in flight and tasks start in submission order.
Failures are captured per task and never cancel siblings.
"""

import asyncio
import inspect
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

T = TypeVar("T")

Task = Callable[[], Union[T, Awaitable[T]]]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Settled result of one task"""
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ConcurrencyLimiter:
    """
    Run independent tasks with at most ``concurrency`` executing at once.

    Tasks may be plain callables or coroutine functions. The limiter never
    retries a task.
    """

    def __init__(self, concurrency: int):
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            raise ValueError("concurrency must be an integer >= 1")
        self.concurrency = concurrency
        self.active = 0
        self.max_active = 0

    async def run(self, tasks: Sequence[Task]) -> List[Outcome[Any]]:
        """
        Submit all tasks and wait for every one to settle.

        Returns:
            One Outcome per task, in submission order
        """
        queue: Deque[Tuple[int, Task]] = deque(enumerate(tasks))
        outcomes: List[Optional[Outcome[Any]]] = [None] * len(queue)

        async def worker():
            while queue:
                index, task = queue.popleft()
                self.active += 1
                self.max_active = max(self.max_active, self.active)
                try:
                    result = task()
                    if inspect.isawaitable(result):
                        result = await result
                    outcomes[index] = Outcome(value=result)
                except Exception as e:
                    outcomes[index] = Outcome(error=e)
                finally:
                    self.active -= 1

        workers = min(self.concurrency, len(outcomes))
        if workers:
            await asyncio.gather(*(worker() for _ in range(workers)))

        return outcomes
