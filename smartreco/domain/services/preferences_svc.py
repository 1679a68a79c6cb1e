import logging
import time
from typing import Dict, Optional

from smartreco.domain.models.product import Product
from smartreco.domain.models.recommendation import PreferenceProfile
from smartreco.domain.repositories.interaction_repo import InteractionRepo
from smartreco.domain.repositories.product_repo import ProductRepo
from smartreco.domain.services.constants import (
    PRICE_LOW_MAX,
    PRICE_MEDIUM_MAX,
    PROFILE_TYPES,
    PROFILE_WEIGHTS,
)

logger = logging.getLogger(__name__)


def price_band(price: float) -> str:
    if price < PRICE_LOW_MAX:
        return "low"
    if price < PRICE_MEDIUM_MAX:
        return "medium"
    return "high"


def accumulate(profile: PreferenceProfile, product: Product, weight: float) -> None:
    """Fold one product's attributes into the profile with the given weight."""
    if product.category:
        profile.categories[product.category] = profile.categories.get(product.category, 0) + weight
    for tag in product.tags or []:
        profile.tags[tag] = profile.tags.get(tag, 0) + weight
    if product.price is not None:
        band = price_band(product.price)
        setattr(profile.price_bands, band, getattr(profile.price_bands, band) + weight)


class PreferenceProfiler:
    """Builds a user's weighted category/tag/price-band preferences from history."""

    def __init__(self, interactions: InteractionRepo, products: ProductRepo):
        self.interactions = interactions
        self.products = products

    async def build_profile(self, user_id: str) -> Optional[PreferenceProfile]:
        """
        None when the user has no view/click/like/purchase interactions, which
        tells the caller to fall back to popular products.
        """
        t0 = time.perf_counter()
        history = await self.interactions.find_by_user(user_id, types=PROFILE_TYPES, newest_first=True)
        if not history:
            logger.info("profile empty user_id=%s", user_id)
            return None

        # Strongest interaction per product wins
        strongest: Dict[str, int] = {}
        for interaction in history:
            weight = PROFILE_WEIGHTS.get(interaction.interaction_type)
            if weight is None:
                continue
            if weight > strongest.get(interaction.product_id, 0):
                strongest[interaction.product_id] = weight
        if not strongest:
            return None

        profile = PreferenceProfile(interacted_product_ids=set(strongest))
        products = await self.products.get_many_by_product_ids(list(strongest))
        for product in products:
            accumulate(profile, product, strongest[product.product_id])

        logger.debug(
            "profile built user_id=%s products=%s categories=%s tags=%s time=%.3fs",
            user_id, len(strongest), len(profile.categories), len(profile.tags), time.perf_counter() - t0,
        )
        return profile
