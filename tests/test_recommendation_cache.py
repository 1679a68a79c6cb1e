"""Tests for the time-bounded recommendation cache."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import DESCENDING

from smartreco.domain.models.recommendation import RecommendationType
from smartreco.domain.repositories.recommendation_cache_repo import RecommendationCacheRepo

from fakes import FakeRecommendationsCollection


@pytest.fixture
def cache(clock):
    return RecommendationCacheRepo({"recommendations": FakeRecommendationsCollection()}, clock=clock)


@pytest.mark.asyncio
async def test_put_then_get_round_trip(cache, clock):
    await cache.put("u1", RecommendationType.HYBRID, ["p1", "p2"])

    entry = await cache.get("u1", RecommendationType.HYBRID)

    assert entry.product_ids == ["p1", "p2"]
    assert entry.recommendation_type is RecommendationType.HYBRID
    assert entry.expires_at > clock()
    assert entry.expires_at - entry.generated_at == timedelta(hours=24)


@pytest.mark.asyncio
async def test_entry_is_ignored_after_expiry(cache, clock):
    await cache.put("u1", RecommendationType.HYBRID, ["p1"])

    clock.advance(hours=24)
    assert await cache.get("u1", RecommendationType.HYBRID) is None


@pytest.mark.asyncio
async def test_get_returns_newest_live_entry(cache, clock):
    await cache.put("u1", RecommendationType.COLLABORATIVE, ["old"])
    clock.advance(hours=1)
    await cache.put("u1", RecommendationType.COLLABORATIVE, ["new"])

    entry = await cache.get("u1", RecommendationType.COLLABORATIVE)

    assert entry.product_ids == ["new"]
    # prior entries are kept, not overwritten
    assert len(cache.col.docs) == 2


@pytest.mark.asyncio
async def test_entries_are_scoped_by_user_and_type(cache):
    await cache.put("u1", RecommendationType.HYBRID, ["p1"])

    assert await cache.get("u1", RecommendationType.TRENDING) is None
    assert await cache.get("u2", RecommendationType.HYBRID) is None


@pytest.mark.asyncio
async def test_get_queries_live_entries_newest_first(clock):
    col = MagicMock()
    col.find_one = AsyncMock(return_value=None)
    cache = RecommendationCacheRepo({"recommendations": col}, clock=clock)

    assert await cache.get("u1", "content-based") is None

    query, projection = col.find_one.call_args.args
    assert query == {
        "user_id": "u1",
        "recommendation_type": "content-based",
        "expires_at": {"$gt": clock()},
    }
    assert col.find_one.call_args.kwargs["sort"] == [("generated_at", DESCENDING)]


@pytest.mark.asyncio
async def test_naive_datetimes_from_store_are_treated_as_utc(clock):
    expired = {
        "user_id": "u1",
        "product_ids": ["p1"],
        "recommendation_type": "hybrid",
        "generated_at": (clock() - timedelta(hours=30)).replace(tzinfo=None),
        "expires_at": (clock() - timedelta(hours=6)).replace(tzinfo=None),
    }
    col = MagicMock()
    col.find_one = AsyncMock(return_value=expired)
    cache = RecommendationCacheRepo({"recommendations": col}, clock=clock)

    assert await cache.get("u1", RecommendationType.HYBRID) is None
