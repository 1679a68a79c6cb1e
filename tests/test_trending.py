"""Tests for popularity queries and the Redis-backed trending cache."""

from datetime import timedelta

import pytest

from smartreco.domain.services.trending_svc import TrendingService

from fakes import T0, FakeInteractionRepo, interaction


class FakeRedis:
    def __init__(self, fail=False):
        self.store = {}
        self.fail = fail
        self.ttls = {}

    async def get(self, key):
        if self.fail:
            raise ConnectionError("redis down")
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self.fail:
            raise ConnectionError("redis down")
        self.store[key] = value
        self.ttls[key] = ex


@pytest.fixture
def interactions():
    old = T0 - timedelta(days=10)
    return FakeInteractionRepo(
        [interaction(f"u{i}", "old-hit", at=old) for i in range(5)]
        + [interaction("u1", "fresh", at=T0 - timedelta(days=1)) for _ in range(2)]
        + [interaction("u2", "p3", at=T0)]
    )


@pytest.mark.asyncio
async def test_all_time_counts_everything(interactions, clock):
    trending = TrendingService(interactions, clock=clock)

    assert await trending.most_interacted_all_time(3) == ["old-hit", "fresh", "p3"]
    assert await trending.most_interacted_all_time(3, exclude=["old-hit"]) == ["fresh", "p3"]
    assert await trending.most_interacted_all_time(0) == []


@pytest.mark.asyncio
async def test_trending_only_counts_the_window(interactions, clock):
    trending = TrendingService(interactions, clock=clock)

    assert await trending.trending(5, window_days=7) == ["fresh", "p3"]
    assert await trending.trending(5, window_days=30) == ["old-hit", "fresh", "p3"]


@pytest.mark.asyncio
async def test_trending_is_served_from_redis_when_cached(interactions, clock):
    redis = FakeRedis()
    trending = TrendingService(interactions, redis=redis, cache_ttl=60, clock=clock)

    first = await trending.trending(5, window_days=7)
    interactions.items.clear()
    second = await trending.trending(5, window_days=7)

    assert first == second == ["fresh", "p3"]
    assert list(redis.ttls.values()) == [60]


@pytest.mark.asyncio
async def test_redis_errors_do_not_break_trending(interactions, clock):
    trending = TrendingService(interactions, redis=FakeRedis(fail=True), clock=clock)

    assert await trending.trending(5, window_days=7) == ["fresh", "p3"]
