import logging
import time
from typing import Dict, List, Set, Tuple

from smartreco.domain.models.recommendation import Degradation, RecoOutcome
from smartreco.domain.repositories.interaction_repo import InteractionRepo
from smartreco.domain.repositories.user_repo import UserRepo
from smartreco.domain.services.constants import COLLAB_MULTIPLIERS, COLLAB_TYPES, SIMILAR_USERS_K
from smartreco.domain.services.similarity import jaccard
from smartreco.domain.services.trending_svc import TrendingService

logger = logging.getLogger(__name__)


class CollaborativeRecommender:
    """
    User-based collaborative filtering.
    Neighbours are the top-k users by Jaccard overlap of interacted products;
    candidates are what neighbours viewed, liked or purchased that the target
    user has not touched, weighted by similarity x interaction strength.
    """

    def __init__(
        self,
        interactions: InteractionRepo,
        users: UserRepo,
        trending: TrendingService,
        similar_users_k: int = SIMILAR_USERS_K,
    ):
        self.interactions = interactions
        self.users = users
        self.trending = trending
        self.similar_users_k = similar_users_k

    async def find_similar_users(self, user_id: str, own_products: Set[str]) -> List[Tuple[str, float]]:
        """[(user_id, similarity)] with similarity > 0, best first, at most k."""
        other_ids = await self.users.list_user_ids(exclude=user_id)
        product_sets = await self.interactions.product_sets_by_user(other_ids)

        scored: List[Tuple[str, float]] = []
        for other_id in other_ids:
            products = product_sets.get(other_id)
            if not products:
                continue
            similarity = jaccard(own_products, products)
            if similarity > 0:
                scored.append((other_id, similarity))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[: self.similar_users_k]

    async def recommend(self, user_id: str, limit: int) -> RecoOutcome:
        t0 = time.perf_counter()
        try:
            own = await self.interactions.find_by_user(user_id)
            if not own:
                logger.info("collaborative no_history user_id=%s", user_id)
                return RecoOutcome(degradation=Degradation.NO_HISTORY)
            own_products = {i.product_id for i in own}

            neighbours = await self.find_similar_users(user_id, own_products)
            if not neighbours:
                ids = await self.trending.most_interacted_all_time(limit)
                logger.info("collaborative no_neighbours user_id=%s fallback_items=%s", user_id, len(ids))
                return RecoOutcome(product_ids=ids, degradation=Degradation.FALLBACK_TRENDING)

            weights: Dict[str, float] = {}
            for other_id, similarity in neighbours:
                for interaction in await self.interactions.find_by_user(other_id, types=COLLAB_TYPES):
                    product_id = interaction.product_id
                    if product_id in own_products:
                        continue
                    multiplier = COLLAB_MULTIPLIERS.get(interaction.interaction_type, 1)
                    weights[product_id] = weights.get(product_id, 0.0) + similarity * multiplier

            # sorted() is stable: equal weights keep first-seen order
            ranked = sorted(weights, key=weights.__getitem__, reverse=True)[:limit]

            degradation = Degradation.NONE
            if len(ranked) < limit:
                backfill = await self.trending.most_interacted_all_time(
                    limit - len(ranked), exclude=own_products | set(ranked)
                )
                if backfill:
                    ranked += backfill
                    degradation = Degradation.BACKFILLED

            logger.info(
                "collaborative done user_id=%s neighbours=%s candidates=%s items=%s time=%.3fs",
                user_id, len(neighbours), len(weights), len(ranked), time.perf_counter() - t0,
            )
            return RecoOutcome(product_ids=ranked, degradation=degradation)
        except Exception as e:
            logger.error("collaborative failed user_id=%s err=%s", user_id, e)
            return RecoOutcome(degradation=Degradation.UPSTREAM_FAILURE)
