"""
Tests for the async token bucket.
"""
import asyncio

import pytest

from inventory_feed.services.rate_limiter import TokenBucket


@pytest.fixture
def sleeps(monkeypatch, clock):
    """Replace asyncio.sleep with one that advances the fake clock instantly."""
    recorded = []

    async def fake_sleep(seconds):
        recorded.append(seconds)
        clock.advance(seconds)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


class TestTokenBucket:

    def test_burst_without_waiting(self, clock, sleeps):
        bucket = TokenBucket(rate=10, capacity=3, clock=clock)

        async def burst():
            for _ in range(3):
                await bucket.acquire()

        asyncio.run(burst())
        assert sleeps == []

    def test_waits_for_refill(self, clock, sleeps):
        bucket = TokenBucket(rate=4, capacity=2, clock=clock)

        async def drain():
            for _ in range(4):
                await bucket.acquire()

        asyncio.run(drain())
        assert sleeps == [0.25, 0.25]

    def test_refill_is_capped(self, clock):
        bucket = TokenBucket(rate=10, capacity=5, clock=clock)
        asyncio.run(bucket.acquire(5))
        clock.advance(100)
        assert bucket.available == 5

    def test_invalid_arguments(self, clock):
        with pytest.raises(ValueError):
            TokenBucket(rate=0, capacity=1)
        bucket = TokenBucket(rate=1, capacity=1, clock=clock)
        with pytest.raises(ValueError):
            asyncio.run(bucket.acquire(2))
