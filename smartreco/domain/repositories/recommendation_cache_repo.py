from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING
from smartreco.domain.models.recommendation import Recommendation, RecommendationType

DEFAULT_TTL = 24 * 3600


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(dt: datetime) -> datetime:
    # Mongo returns naive UTC datetimes unless the client is tz_aware
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


class RecommendationCacheRepo:
    """
    Materialized recommendation lists in the 'recommendations' collection.
    Each put() inserts a new entry with generated_at/expires_at; nothing is
    overwritten. get() returns the newest entry whose expires_at is still in
    the future. Expired entries are ignored here and reclaimed by the TTL index
    on expires_at (see smartreco.db.mongo.ensure_indexes).
    """
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        ttl: int = DEFAULT_TTL,
        clock: Callable[[], datetime] = utcnow,
        collection_name: str = "recommendations",
    ):
        """
        Args:
            db: Motor database
            ttl: lifetime of an entry in seconds (24h by default)
            clock: returns the current aware UTC datetime; injectable for tests
        """
        self.col = db[collection_name]
        self.ttl = ttl
        self.clock = clock

    async def get(self, user_id: str, rec_type: RecommendationType) -> Optional[Recommendation]:
        """Newest live entry for (user_id, rec_type), or None."""
        now = self.clock()
        doc = await self.col.find_one(
            {
                "user_id": user_id,
                "recommendation_type": RecommendationType(rec_type).value,
                "expires_at": {"$gt": now},
            },
            {"_id": 0},
            sort=[("generated_at", DESCENDING)],
        )
        if not doc:
            return None
        rec = Recommendation.model_validate(doc)
        # Guard against stores that compare naive and aware datetimes loosely
        if _aware(rec.expires_at) <= now:
            return None
        return rec

    async def put(
        self,
        user_id: str,
        rec_type: RecommendationType,
        product_ids: Iterable[str],
    ) -> Recommendation:
        """Insert a new entry valid for `ttl` seconds from now."""
        now = self.clock()
        rec = Recommendation(
            user_id=user_id,
            product_ids=list(product_ids),
            recommendation_type=RecommendationType(rec_type),
            generated_at=now,
            expires_at=now + timedelta(seconds=self.ttl),
        )
        doc = rec.model_dump()
        doc["recommendation_type"] = rec.recommendation_type.value
        await self.col.insert_one(doc)
        return rec
