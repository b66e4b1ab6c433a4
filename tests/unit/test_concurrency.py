"""
Unit tests for the bounded concurrency limiter
"""

import asyncio

import pytest

from ingestion.concurrency import ConcurrencyLimiter, Outcome


class TestConcurrencyLimiter:
    """Test bounded all-settled execution"""

    @pytest.mark.parametrize("value", [0, -1, 1.5, True, "2"])
    def test_rejects_invalid_concurrency(self, value):
        with pytest.raises(ValueError):
            ConcurrencyLimiter(value)

    @pytest.mark.asyncio
    async def test_outcomes_in_submission_order(self):
        """Completion order does not affect result order"""
        limiter = ConcurrencyLimiter(3)

        def task(i):
            async def run():
                await asyncio.sleep(0.001 * (5 - i))
                return i
            return run

        outcomes = await limiter.run([task(i) for i in range(5)])

        assert [o.value for o in outcomes] == [0, 1, 2, 3, 4]
        assert all(o.ok for o in outcomes)

    @pytest.mark.asyncio
    async def test_never_exceeds_concurrency(self):
        limiter = ConcurrencyLimiter(2)
        in_flight = []
        peak = []

        def task():
            async def run():
                in_flight.append(1)
                peak.append(len(in_flight))
                await asyncio.sleep(0.001)
                in_flight.pop()
            return run

        await limiter.run([task() for _ in range(10)])

        assert max(peak) == 2
        assert limiter.max_active == 2
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_siblings(self):
        limiter = ConcurrencyLimiter(2)
        finished = []

        def ok(i):
            async def run():
                await asyncio.sleep(0.001)
                finished.append(i)
                return i
            return run

        def boom():
            raise RuntimeError("boom")

        outcomes = await limiter.run([ok(0), boom, ok(2), ok(3)])

        assert sorted(finished) == [0, 2, 3]
        assert outcomes[1].ok is False
        assert isinstance(outcomes[1].error, RuntimeError)
        assert [o.value for o in outcomes if o.ok] == [0, 2, 3]

    @pytest.mark.asyncio
    async def test_fifo_admission(self):
        """Tasks start in submission order as slots free up"""
        limiter = ConcurrencyLimiter(1)
        started = []

        def task(i):
            async def run():
                started.append(i)
                await asyncio.sleep(0)
            return run

        await limiter.run([task(i) for i in range(4)])

        assert started == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_accepts_plain_callables(self):
        limiter = ConcurrencyLimiter(4)

        outcomes = await limiter.run([lambda: "a", lambda: "b"])

        assert outcomes == [Outcome(value="a"), Outcome(value="b")]

    @pytest.mark.asyncio
    async def test_empty_task_list(self):
        limiter = ConcurrencyLimiter(5)

        assert await limiter.run([]) == []

    @pytest.mark.asyncio
    async def test_tasks_are_not_retried(self):
        limiter = ConcurrencyLimiter(1)
        calls = []

        def flaky():
            calls.append(1)
            raise ValueError("nope")

        outcomes = await limiter.run([flaky])

        assert len(calls) == 1
        assert not outcomes[0].ok
