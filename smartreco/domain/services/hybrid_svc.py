import asyncio
import logging
import math
import time
from typing import Iterable, List, Tuple

from smartreco.domain.errors import UpstreamFailure
from smartreco.domain.models.recommendation import Degradation, RecoOutcome
from smartreco.domain.repositories.interaction_repo import InteractionRepo
from smartreco.domain.services.collaborative_svc import CollaborativeRecommender
from smartreco.domain.services.constants import (
    HYBRID_COLD_MAX,
    HYBRID_WARM_MIN,
    HYBRID_WEIGHTS_COLD,
    HYBRID_WEIGHTS_DEFAULT,
    HYBRID_WEIGHTS_WARM,
)
from smartreco.domain.services.content_based_svc import ContentBasedRecommender
from smartreco.domain.services.trending_svc import TrendingService

logger = logging.getLogger(__name__)


def hybrid_weights(interaction_count: int) -> Tuple[float, float]:
    """
    (collaborative, content-based) weights.
    New users lean on content; users with a long history lean on neighbours.
    """
    if interaction_count < HYBRID_COLD_MAX:
        return HYBRID_WEIGHTS_COLD
    if interaction_count > HYBRID_WARM_MIN:
        return HYBRID_WEIGHTS_WARM
    return HYBRID_WEIGHTS_DEFAULT


def sub_limit(limit: int, weight: float) -> int:
    """
    ceil(limit * weight) on the decimal product: 10 x 0.7 gives 7 and 10 x 0.3 gives 3.
    A plain float ceil would give 8 and 4 (one item of headroom per side through
    float noise); the merge is truncated to `limit` either way.
    """
    return math.ceil(round(limit * weight, 9))


def merge_first_seen(*lists: Iterable[str]) -> List[str]:
    """Concatenate, dropping repeats; earlier lists win."""
    seen = set()
    merged: List[str] = []
    for ids in lists:
        for product_id in ids:
            if product_id not in seen:
                seen.add(product_id)
                merged.append(product_id)
    return merged


class HybridRecommender:
    """
    Blends collaborative and content-based results. Both run concurrently with
    sub-limits proportional to the weights; collaborative results take
    precedence in the merge, and short lists are backfilled from the all-time
    most-interacted products.
    """

    def __init__(
        self,
        interactions: InteractionRepo,
        collaborative: CollaborativeRecommender,
        content_based: ContentBasedRecommender,
        trending: TrendingService,
    ):
        self.interactions = interactions
        self.collaborative = collaborative
        self.content_based = content_based
        self.trending = trending

    async def _blend(self, user_id: str, limit: int) -> RecoOutcome:
        count = await self.interactions.count_by_user(user_id)
        collab_weight, content_weight = hybrid_weights(count)
        collab_limit = sub_limit(limit, collab_weight)
        content_limit = sub_limit(limit, content_weight)
        logger.debug(
            "hybrid weights user_id=%s interactions=%s collab=%s/%s content=%s/%s",
            user_id, count, collab_weight, collab_limit, content_weight, content_limit,
        )

        # Both must finish; a raised or reported failure in either reaches recommend()
        async with asyncio.TaskGroup() as tg:
            collab_task = tg.create_task(self.collaborative.recommend(user_id, collab_limit))
            content_task = tg.create_task(self.content_based.recommend(user_id, content_limit))
        collab, content = collab_task.result(), content_task.result()
        for name, sub in (("collaborative", collab), ("content-based", content)):
            if sub.degradation is Degradation.UPSTREAM_FAILURE:
                raise UpstreamFailure(f"{name} recommender failed for user_id={user_id}")

        selected = merge_first_seen(collab.product_ids, content.product_ids)[:limit]
        degradation = Degradation.NONE
        if len(selected) < limit:
            backfill = await self.trending.most_interacted_all_time(limit - len(selected), exclude=selected)
            backfill = [pid for pid in backfill if pid not in selected]
            if backfill:
                selected = (selected + backfill)[:limit]
                degradation = Degradation.BACKFILLED
        return RecoOutcome(product_ids=selected, degradation=degradation)

    async def recommend(self, user_id: str, limit: int) -> RecoOutcome:
        t0 = time.perf_counter()
        try:
            outcome = await self._blend(user_id, limit)
            logger.info(
                "hybrid done user_id=%s items=%s degradation=%s time=%.3fs",
                user_id, len(outcome), outcome.degradation.value, time.perf_counter() - t0,
            )
            return outcome
        except Exception as e:
            logger.error("hybrid failed user_id=%s err=%s, falling back to collaborative", user_id, e)

        try:
            fallback = await self.collaborative.recommend(user_id, limit)
            degradation = (
                fallback.degradation
                if fallback.degradation in (Degradation.UPSTREAM_FAILURE, Degradation.NO_HISTORY)
                else Degradation.FALLBACK_COLLABORATIVE
            )
            return RecoOutcome(product_ids=fallback.product_ids, degradation=degradation)
        except Exception as e:
            logger.error("hybrid collaborative fallback failed user_id=%s err=%s", user_id, e)
            return RecoOutcome(degradation=Degradation.UPSTREAM_FAILURE)
