# smartreco/api/deps.py
from fastapi import Depends
from smartreco.db.mongo import get_db
from smartreco.db.redis import get_redis
from smartreco.domain.services.interactions_svc import InteractionService
from smartreco.domain.services.recommendation_svc import RecommendationService

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    return db

# Dependency for injecting the Redis client (None when disabled)
def redis_dep():
    return get_redis()

# Request-scoped service graph; no state is shared between requests
def recommendation_service(db = Depends(mongo_db), redis = Depends(redis_dep)) -> RecommendationService:
    return RecommendationService.from_db(db, redis)

def interaction_service(db = Depends(mongo_db)) -> InteractionService:
    return InteractionService.from_db(db)
