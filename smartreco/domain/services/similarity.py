"""
Pure similarity functions shared by the recommenders.

Both public functions return a score in [0, 1] and never raise: a failure is
logged and scored as 0 so that one malformed record cannot break a ranking.
"""
import logging
import re
from typing import AbstractSet, Iterable, Optional

from smartreco.domain.models.interaction import Interaction
from smartreco.domain.models.product import Product
from smartreco.domain.services.constants import (
    SIM_WEIGHT_CATEGORY,
    SIM_WEIGHT_NAME,
    SIM_WEIGHT_PRICE,
    SIM_WEIGHT_TAGS,
)

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"\W+")


def jaccard(a: AbstractSet, b: AbstractSet) -> float:
    """|a ∩ b| / |a ∪ b|; 0 when either set is empty."""
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def product_ids_of(interactions: Iterable[Interaction]) -> set:
    return {i.product_id for i in interactions}


def user_similarity(interactions_a: Iterable[Interaction], interactions_b: Iterable[Interaction]) -> float:
    """Jaccard similarity of the distinct products two users interacted with."""
    try:
        return jaccard(product_ids_of(interactions_a), product_ids_of(interactions_b))
    except Exception as e:
        logger.error("user_similarity failed err=%s", e)
        return 0.0


def _name_tokens(name: str) -> set:
    return {t for t in _TOKEN_SPLIT.split(name.lower()) if t}


def name_overlap(name_a: str, name_b: str) -> float:
    """Common tokens over the size of the smaller token set."""
    tokens_a, tokens_b = _name_tokens(name_a), _name_tokens(name_b)
    smaller = min(len(tokens_a), len(tokens_b))
    if smaller == 0:
        return 0.0
    return len(tokens_a & tokens_b) / smaller


def price_similarity(price_a: float, price_b: float) -> float:
    high = max(price_a, price_b)
    if high == 0:
        return 1.0
    return max(0.0, 1 - abs(price_a - price_b) / high)


def _present(value: Optional[object]) -> bool:
    return value is not None and value != ""


def product_similarity(product_a: Product, product_b: Product) -> float:
    """
    Attribute similarity between two products:
      category 0.4, tags 0.3, price 0.2, name tokens 0.1.
    A weight counts towards the normalising total only when its attribute is
    present on both products, so sparse catalog entries are not penalised for
    what they do not declare.
    """
    try:
        score = 0.0
        total_weight = 0.0

        if _present(product_a.category) and _present(product_b.category):
            total_weight += SIM_WEIGHT_CATEGORY
            if product_a.category == product_b.category:
                score += SIM_WEIGHT_CATEGORY

        if product_a.tags is not None and product_b.tags is not None:
            total_weight += SIM_WEIGHT_TAGS
            score += jaccard(set(product_a.tags), set(product_b.tags)) * SIM_WEIGHT_TAGS

        if product_a.price is not None and product_b.price is not None:
            total_weight += SIM_WEIGHT_PRICE
            score += price_similarity(product_a.price, product_b.price) * SIM_WEIGHT_PRICE

        if _present(product_a.name) and _present(product_b.name):
            total_weight += SIM_WEIGHT_NAME
            score += name_overlap(product_a.name, product_b.name) * SIM_WEIGHT_NAME

        return score / total_weight if total_weight > 0 else 0.0
    except Exception as e:
        logger.error(
            "product_similarity failed a=%s b=%s err=%s",
            getattr(product_a, "product_id", None), getattr(product_b, "product_id", None), e,
        )
        return 0.0
