import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from redis.asyncio import Redis

from smartreco.domain.repositories.interaction_repo import InteractionRepo
from smartreco.utils.cache import cache_get, cache_key, cache_set

logger = logging.getLogger(__name__)

TRENDING_CACHE_PREFIX = "trending"
DEFAULT_TRENDING_CACHE_TTL = 5 * 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrendingService:
    """
    Popularity by interaction count. Two distinct operations:
      - most_interacted_all_time: counts every interaction ever recorded; used as
        the fallback/backfill pool by the personalised recommenders.
      - trending: counts only the last `window_days`; backs the trending endpoint
        and the "trending" recommendation type. Results are cached in Redis
        briefly when a client is available.
    """

    def __init__(
        self,
        interactions: InteractionRepo,
        redis: Optional[Redis] = None,
        cache_ttl: int = DEFAULT_TRENDING_CACHE_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.interactions = interactions
        self.redis = redis
        self.cache_ttl = cache_ttl
        self.clock = clock

    async def most_interacted_all_time(self, limit: int, exclude: Optional[Iterable[str]] = None) -> List[str]:
        if limit <= 0:
            return []
        excluded = list(exclude) if exclude else None
        rows = await self.interactions.top_products(limit, exclude=excluded)
        return [product_id for product_id, _ in rows]

    async def trending(self, limit: int, window_days: int) -> List[str]:
        if limit <= 0:
            return []
        t0 = time.perf_counter()
        key = cache_key(TRENDING_CACHE_PREFIX, {"shape": "pids_v1", "limit": limit, "days": window_days})

        try:
            cached = await cache_get(self.redis, key)
        except Exception as e:
            logger.warning("trending redis.get error key=%s err=%s", key, e)
            cached = None
        if isinstance(cached, list):
            logger.info("trending cache_hit key=%s items=%s", key, len(cached))
            return cached

        since = self.clock() - timedelta(days=window_days)
        rows = await self.interactions.top_products(limit, since=since)
        product_ids = [product_id for product_id, _ in rows]
        logger.info(
            "trending db_ok items=%s window_days=%s time=%.3fs",
            len(product_ids), window_days, time.perf_counter() - t0,
        )

        try:
            await cache_set(self.redis, key, product_ids, ex=self.cache_ttl)
        except Exception as e:
            logger.warning("trending redis.set error key=%s err=%s", key, e)
        return product_ids
