import asyncio
import logging
import time
from typing import List, Optional

from smartreco.core.config import Settings, get_settings
from smartreco.domain.errors import ProductNotFound
from smartreco.domain.models.product import Product
from smartreco.domain.models.recommendation import (
    Degradation,
    RecommendationType,
    RecommendationsResult,
    RecoOutcome,
)
from smartreco.domain.repositories.interaction_repo import InteractionRepo
from smartreco.domain.repositories.product_repo import ProductRepo
from smartreco.domain.repositories.recommendation_cache_repo import RecommendationCacheRepo
from smartreco.domain.repositories.user_repo import UserRepo
from smartreco.domain.services.collaborative_svc import CollaborativeRecommender
from smartreco.domain.services.content_based_svc import ContentBasedRecommender
from smartreco.domain.services.hybrid_svc import HybridRecommender
from smartreco.domain.services.preferences_svc import PreferenceProfiler
from smartreco.domain.services.trending_svc import TrendingService

logger = logging.getLogger(__name__)

SOURCE_CACHED = "cached"
SOURCE_GENERATED = "generated"


class RecommendationService:
    """
    Entry point for request handlers.

    get_recommendations() flow:
      1) Look up a live cache entry for (user, type); on hit hydrate and return it.
      2) On miss run the requested algorithm under a time budget; if the budget
         runs out, serve windowed trending instead.
      3) Store the ids as a new cache entry (unless storage failed outright),
         hydrate to products and return with source="generated".
    """

    def __init__(
        self,
        *,
        interactions: InteractionRepo,
        products: ProductRepo,
        users: UserRepo,
        cache: RecommendationCacheRepo,
        trending: TrendingService,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.interactions = interactions
        self.products = products
        self.cache = cache
        self.trending = trending

        profiler = PreferenceProfiler(interactions, products)
        self.collaborative = CollaborativeRecommender(
            interactions, users, trending, similar_users_k=self.settings.similar_users_k
        )
        self.content_based = ContentBasedRecommender(profiler, products, trending)
        self.hybrid = HybridRecommender(interactions, self.collaborative, self.content_based, trending)

    @classmethod
    def from_db(cls, db, redis=None, settings: Optional[Settings] = None) -> "RecommendationService":
        settings = settings or get_settings()
        interactions = InteractionRepo(db)
        return cls(
            interactions=interactions,
            products=ProductRepo(db),
            users=UserRepo(db),
            cache=RecommendationCacheRepo(db, ttl=settings.recommendation_ttl),
            trending=TrendingService(interactions, redis=redis, cache_ttl=settings.trending_cache_ttl),
            settings=settings,
        )

    async def generate(self, user_id: str, limit: int, rec_type: RecommendationType) -> RecoOutcome:
        """
        Run one algorithm without touching the cache.
        A user with no interactions gets the all-time most-interacted products.
        """
        if rec_type == RecommendationType.TRENDING:
            ids = await self.trending.trending(limit, self.settings.trending_window_days)
            return RecoOutcome(product_ids=ids)
        if rec_type == RecommendationType.COLLABORATIVE:
            outcome = await self.collaborative.recommend(user_id, limit)
        elif rec_type == RecommendationType.CONTENT_BASED:
            outcome = await self.content_based.recommend(user_id, limit)
        else:
            outcome = await self.hybrid.recommend(user_id, limit)

        if outcome.degradation is Degradation.NO_HISTORY:
            try:
                ids = await self.trending.most_interacted_all_time(limit)
            except Exception as e:
                logger.error("recommendations popular fallback failed user_id=%s err=%s", user_id, e)
                return RecoOutcome(degradation=Degradation.UPSTREAM_FAILURE)
            logger.info("recommendations no_history user_id=%s fallback_items=%s", user_id, len(ids))
            return RecoOutcome(product_ids=ids, degradation=Degradation.FALLBACK_TRENDING)
        return outcome

    async def _generate_within_budget(self, user_id: str, limit: int, rec_type: RecommendationType) -> RecoOutcome:
        try:
            return await asyncio.wait_for(
                self.generate(user_id, limit, rec_type),
                timeout=self.settings.recommendation_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "recommendations timeout user_id=%s type=%s budget=%.1fs, serving trending",
                user_id, rec_type.value, self.settings.recommendation_timeout_s,
            )
        try:
            ids = await self.trending.trending(limit, self.settings.trending_window_days)
            return RecoOutcome(product_ids=ids, degradation=Degradation.TIMEOUT)
        except Exception as e:
            logger.error("recommendations trending fallback failed user_id=%s err=%s", user_id, e)
            return RecoOutcome(degradation=Degradation.UPSTREAM_FAILURE)

    async def get_recommendations(
        self,
        user_id: str,
        limit: int,
        rec_type: RecommendationType = RecommendationType.HYBRID,
    ) -> RecommendationsResult:
        t0 = time.perf_counter()
        rec_type = RecommendationType(rec_type)
        logger.info("recommendations start user_id=%s limit=%s type=%s", user_id, limit, rec_type.value)

        try:
            cached = await self.cache.get(user_id, rec_type)
        except Exception as e:
            logger.warning("recommendations cache.get error user_id=%s err=%s", user_id, e)
            cached = None

        if cached:
            products = await self.products.get_many_by_product_ids(cached.product_ids)
            logger.info(
                "recommendations cache_hit user_id=%s type=%s items=%s time=%.3fs",
                user_id, rec_type.value, len(products), time.perf_counter() - t0,
            )
            return RecommendationsResult(
                user_id=user_id,
                recommendation_type=rec_type,
                products=products,
                source=SOURCE_CACHED,
                generated_at=cached.generated_at,
                count=len(products),
            )

        outcome = await self._generate_within_budget(user_id, limit, rec_type)
        generated_at = self.cache.clock()
        if outcome.degradation is not Degradation.UPSTREAM_FAILURE:
            try:
                entry = await self.cache.put(user_id, rec_type, outcome.product_ids)
                generated_at = entry.generated_at
            except Exception as e:
                logger.warning("recommendations cache.put error user_id=%s err=%s", user_id, e)

        products = await self.products.get_many_by_product_ids(outcome.product_ids)
        logger.info(
            "recommendations generated user_id=%s type=%s items=%s degradation=%s time=%.3fs",
            user_id, rec_type.value, len(products), outcome.degradation.value, time.perf_counter() - t0,
        )
        return RecommendationsResult(
            user_id=user_id,
            recommendation_type=rec_type,
            products=products,
            source=SOURCE_GENERATED,
            generated_at=generated_at,
            degradation=outcome.degradation,
            count=len(products),
        )

    async def get_similar_products(self, product_id: str, limit: int) -> List[Product]:
        if await self.products.get_by_product_id(product_id) is None:
            raise ProductNotFound(product_id)
        ids = await self.content_based.similar_products(product_id, limit)
        return await self.products.get_many_by_product_ids(ids)

    async def get_trending_products(self, limit: int, window_days: Optional[int] = None) -> List[Product]:
        days = window_days if window_days is not None else self.settings.trending_window_days
        ids = await self.trending.trending(limit, days)
        return await self.products.get_many_by_product_ids(ids)
