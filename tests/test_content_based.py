"""Tests for content-based recommendations and similar products."""

import pytest

from smartreco.domain.models.recommendation import Degradation, PreferenceProfile, PriceBands
from smartreco.domain.services.content_based_svc import ContentBasedRecommender, score_candidate
from smartreco.domain.services.preferences_svc import PreferenceProfiler
from smartreco.domain.services.trending_svc import TrendingService

from fakes import FakeInteractionRepo, FakeProductRepo, interaction, make_product


def make_recommender(interactions, catalog):
    products = FakeProductRepo(catalog)
    return ContentBasedRecommender(
        PreferenceProfiler(interactions, products), products, TrendingService(interactions)
    )


def test_score_uses_only_the_candidates_own_price_band():
    profile = PreferenceProfile(tags={"gadget": 2}, price_bands=PriceBands(low=5))
    expensive = make_product("x", category="electronics", price=300.0, tags=["gadget"])
    cheap = make_product("y", category="electronics", price=20.0, tags=["gadget"])

    assert score_candidate(profile, expensive) == pytest.approx(2 * 0.3)
    assert score_candidate(profile, cheap) == pytest.approx(2 * 0.3 + 5 * 0.2)


def test_score_is_zero_without_matching_preferences():
    profile = PreferenceProfile(categories={"shoes": 3}, price_bands=PriceBands(medium=1))
    assert score_candidate(profile, make_product("z", category="hats", price=500.0)) == 0


@pytest.mark.asyncio
async def test_recommend_ranks_by_preference_score(catalog):
    interactions = FakeInteractionRepo([interaction("u1", "p1", "purchase")])

    outcome = await make_recommender(interactions, catalog).recommend("u1", 3)

    # p2: 1.6 + 1.2 + 0.8, p3: 1.6 + 1.2 (medium band empty), p7: 1.2 + 0.8
    assert outcome.product_ids == ["p2", "p3", "p7"]
    assert outcome.degradation is Degradation.NONE


@pytest.mark.asyncio
async def test_recommend_excludes_interacted_and_zero_scores(catalog):
    interactions = FakeInteractionRepo([interaction("u1", "p1", "purchase")])

    outcome = await make_recommender(interactions, catalog).recommend("u1", 10)

    assert outcome.product_ids == ["p2", "p3", "p7", "p4"]
    assert "p1" not in outcome.product_ids


@pytest.mark.asyncio
async def test_user_without_history_gets_trending_fallback(catalog):
    interactions = FakeInteractionRepo([
        interaction("u2", "p3"),
        interaction("u3", "p3"),
        interaction("u4", "p3"),
        interaction("u2", "p5"),
        interaction("u3", "p5"),
        interaction("u2", "p6"),
    ])

    outcome = await make_recommender(interactions, catalog).recommend("new-user", 2)

    assert outcome.product_ids == ["p3", "p5"]
    assert outcome.degradation is Degradation.FALLBACK_TRENDING


@pytest.mark.asyncio
async def test_storage_failure_degrades_to_empty(catalog):
    interactions = FakeInteractionRepo([interaction("u1", "p1")])
    interactions.fail = True

    outcome = await make_recommender(interactions, catalog).recommend("u1", 3)

    assert outcome.product_ids == []
    assert outcome.degradation is Degradation.UPSTREAM_FAILURE


@pytest.mark.asyncio
async def test_similar_products_ordered_by_attribute_similarity(catalog):
    recommender = make_recommender(FakeInteractionRepo(), catalog)

    assert await recommender.similar_products("p1", 3) == ["p2", "p3", "p7"]


@pytest.mark.asyncio
async def test_similar_products_unknown_reference(catalog):
    recommender = make_recommender(FakeInteractionRepo(), catalog)

    assert await recommender.similar_products("missing", 3) == []
