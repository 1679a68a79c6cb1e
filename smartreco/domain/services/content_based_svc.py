import logging
import time
from typing import List, Tuple

from smartreco.domain.models.product import Product
from smartreco.domain.models.recommendation import Degradation, PreferenceProfile, RecoOutcome
from smartreco.domain.repositories.product_repo import ProductRepo
from smartreco.domain.services.constants import CB_WEIGHT_CATEGORY, CB_WEIGHT_PRICE, CB_WEIGHT_TAGS
from smartreco.domain.services.preferences_svc import PreferenceProfiler, price_band
from smartreco.domain.services.similarity import product_similarity
from smartreco.domain.services.trending_svc import TrendingService

logger = logging.getLogger(__name__)


def score_candidate(profile: PreferenceProfile, product: Product) -> float:
    """
    Preference score of one candidate:
      categories[category] x 0.4 + sum(tags[t]) x 0.3 + band(price) x 0.2
    The price term only uses the candidate's own band; an empty band adds 0.
    """
    score = 0.0
    if product.category:
        score += profile.categories.get(product.category, 0) * CB_WEIGHT_CATEGORY
    if product.tags:
        score += sum(profile.tags.get(tag, 0) for tag in product.tags) * CB_WEIGHT_TAGS
    if product.price is not None:
        band_weight = getattr(profile.price_bands, price_band(product.price))
        if band_weight > 0:
            score += band_weight * CB_WEIGHT_PRICE
    return score


class ContentBasedRecommender:
    def __init__(self, profiler: PreferenceProfiler, products: ProductRepo, trending: TrendingService):
        self.profiler = profiler
        self.products = products
        self.trending = trending

    async def recommend(self, user_id: str, limit: int) -> RecoOutcome:
        t0 = time.perf_counter()
        try:
            profile = await self.profiler.build_profile(user_id)
            if profile is None:
                ids = await self.trending.most_interacted_all_time(limit)
                logger.info("content_based no_profile user_id=%s fallback_items=%s", user_id, len(ids))
                return RecoOutcome(product_ids=ids, degradation=Degradation.FALLBACK_TRENDING)

            candidates = await self.products.find_many(exclude=profile.interacted_product_ids)
            scored: List[Tuple[str, float]] = []
            for product in candidates:
                if product.product_id in profile.interacted_product_ids:
                    continue
                score = score_candidate(profile, product)
                if score > 0:
                    scored.append((product.product_id, score))

            scored.sort(key=lambda pair: pair[1], reverse=True)
            ids = [product_id for product_id, _ in scored[:limit]]
            logger.info(
                "content_based done user_id=%s candidates=%s scored=%s items=%s time=%.3fs",
                user_id, len(candidates), len(scored), len(ids), time.perf_counter() - t0,
            )
            return RecoOutcome(product_ids=ids)
        except Exception as e:
            logger.error("content_based failed user_id=%s err=%s", user_id, e)
            return RecoOutcome(degradation=Degradation.UPSTREAM_FAILURE)

    async def similar_products(self, product_id: str, limit: int) -> List[str]:
        """Products most similar to `product_id` by attributes; [] if it does not exist."""
        try:
            reference = await self.products.get_by_product_id(product_id)
            if reference is None:
                logger.warning("similar_products reference missing product_id=%s", product_id)
                return []

            scored: List[Tuple[str, float]] = []
            for product in await self.products.find_many(exclude=[product_id]):
                if product.product_id == product_id:
                    continue
                similarity = product_similarity(reference, product)
                if similarity > 0:
                    scored.append((product.product_id, similarity))

            scored.sort(key=lambda pair: pair[1], reverse=True)
            return [pid for pid, _ in scored[:limit]]
        except Exception as e:
            logger.error("similar_products failed product_id=%s err=%s", product_id, e)
            return []
