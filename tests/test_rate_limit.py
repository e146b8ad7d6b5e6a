"""Tests for the retry decorator and concurrency limiter"""

import asyncio

import pytest

from careerwatch.core.locks import KeyedLock
from careerwatch.core.rate_limit import RateLimiter, with_retry


class Flaky(Exception):
    pass


async def test_retries_listed_exceptions_until_success():
    attempts = []

    @with_retry(retry_on=(Flaky,), max_retries=3, base_delay=0, max_delay=0)
    async def fetch():
        attempts.append(1)
        if len(attempts) < 3:
            raise Flaky("try again")
        return "ok"

    assert await fetch() == "ok"
    assert len(attempts) == 3


async def test_gives_up_after_max_retries():
    attempts = []

    @with_retry(retry_on=(Flaky,), max_retries=2, base_delay=0, max_delay=0)
    async def fetch():
        attempts.append(1)
        raise Flaky("always")

    with pytest.raises(Flaky):
        await fetch()
    assert len(attempts) == 3


async def test_other_exceptions_are_not_retried():
    attempts = []

    @with_retry(retry_on=(Flaky,), max_retries=5, base_delay=0, max_delay=0)
    async def fetch():
        attempts.append(1)
        raise KeyError("not retryable")

    with pytest.raises(KeyError):
        await fetch()
    assert len(attempts) == 1


async def test_rate_limiter_caps_concurrency():
    limiter = RateLimiter(2)
    running = 0
    peak = 0

    async def work():
        nonlocal running, peak
        async with limiter:
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

    await asyncio.gather(*[work() for _ in range(6)])
    assert peak == 2


async def test_keyed_lock_is_per_key():
    locks = KeyedLock()
    async with locks("a"):
        assert locks.locked("a")
        assert not locks.locked("b")
        assert locks("a") is locks.get("a")
    assert not locks.locked("a")
