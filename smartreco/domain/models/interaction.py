from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class InteractionType(str, Enum):
    VIEW = "view"
    CLICK = "click"
    LIKE = "like"
    PURCHASE = "purchase"
    SEARCH = "search"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Interaction(BaseModel):
    user_id: str
    product_id: str
    interaction_type: InteractionType
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}  # immutable once recorded


class Pagination(BaseModel):
    total: int
    page: int
    pages: int
    limit: int


class InteractionPage(BaseModel):
    """One page of an interaction history, newest first."""
    items: List[Interaction]
    pagination: Pagination


class TypeCount(BaseModel):
    interaction_type: InteractionType
    count: int


class ProductCount(BaseModel):
    product_id: str
    count: int
    name: Optional[str] = None
    category: Optional[str] = None


class UserCount(BaseModel):
    user_id: str
    count: int
    name: Optional[str] = None
    email: Optional[str] = None


class InteractionStats(BaseModel):
    total_interactions: int
    by_type: List[TypeCount]
    most_interacted_products: List[ProductCount]
    most_active_users: List[UserCount]
