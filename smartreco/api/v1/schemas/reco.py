# smartreco/api/v1/schemas/reco.py
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from smartreco.domain.models.interaction import InteractionType
from smartreco.domain.models.product import Product
from smartreco.domain.models.recommendation import Degradation, RecommendationType


class RecommendationsOut(BaseModel):
    user_id: str
    recommendation_type: RecommendationType
    recommendations: List[Product]
    source: str
    generated_at: datetime
    degradation: Degradation = Degradation.NONE
    count: int


class ProductListOut(BaseModel):
    items: List[Product]
    count: int


class InteractionIn(BaseModel):
    user_id: str
    product_id: str
    interaction_type: InteractionType
    metadata: Optional[Dict[str, Any]] = Field(default_factory=dict)


class InteractionOut(BaseModel):
    user_id: str
    product_id: str
    interaction_type: InteractionType
    timestamp: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)
