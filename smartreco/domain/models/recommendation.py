from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from smartreco.domain.models.product import Product


class RecommendationType(str, Enum):
    COLLABORATIVE = "collaborative"
    CONTENT_BASED = "content-based"
    HYBRID = "hybrid"
    TRENDING = "trending"


class Degradation(str, Enum):
    """Why a recommendation list is not the algorithm's first-choice output."""
    NONE = "none"
    BACKFILLED = "backfilled"                        # padded with popular products
    FALLBACK_TRENDING = "fallback_trending"          # no signal, popular products only
    FALLBACK_COLLABORATIVE = "fallback_collaborative"  # hybrid failed, collaborative alone
    NO_HISTORY = "no_history"                        # user has no interactions
    UPSTREAM_FAILURE = "upstream_failure"            # storage raised
    TIMEOUT = "timeout"                              # generation exceeded its budget


class RecoOutcome(BaseModel):
    product_ids: List[str] = Field(default_factory=list)
    degradation: Degradation = Degradation.NONE

    model_config = {"frozen": True}

    def __len__(self) -> int:
        return len(self.product_ids)


class Recommendation(BaseModel):
    """Cache entry: one materialized list per (user, type, generation time)."""
    user_id: str
    product_ids: List[str]
    recommendation_type: RecommendationType = RecommendationType.HYBRID
    score: float = Field(default=0, ge=0, le=1)
    generated_at: datetime
    expires_at: datetime

    model_config = {"frozen": True}


class PriceBands(BaseModel):
    low: float = 0      # price < 50
    medium: float = 0   # price < 200
    high: float = 0     # price >= 200


class PreferenceProfile(BaseModel):
    """Derived per request from a user's interaction history, never persisted."""
    categories: Dict[str, float] = Field(default_factory=dict)
    tags: Dict[str, float] = Field(default_factory=dict)
    price_bands: PriceBands = Field(default_factory=PriceBands)
    interacted_product_ids: Set[str] = Field(default_factory=set)


class RecommendationsResult(BaseModel):
    user_id: str
    recommendation_type: RecommendationType
    products: List[Product]
    source: str                  # "cached" | "generated"
    generated_at: datetime
    degradation: Degradation = Degradation.NONE
    count: int = 0
