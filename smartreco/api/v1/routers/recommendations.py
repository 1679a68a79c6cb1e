# smartreco/api/v1/routers/recommendations.py
from fastapi import APIRouter, Depends, HTTPException, Query
import time
import logging
from typing import Optional

from smartreco.api.deps import recommendation_service
from smartreco.api.v1.schemas.reco import ProductListOut, RecommendationsOut
from smartreco.domain.errors import ProductNotFound
from smartreco.domain.models.recommendation import RecommendationType
from smartreco.domain.services.constants import DEFAULT_LIMIT, DEFAULT_SIMILAR_LIMIT
from smartreco.domain.services.recommendation_svc import RecommendationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("/users/{user_id}", response_model=RecommendationsOut)
async def user_recommendations(
    user_id: str,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    rec_type: RecommendationType = Query(RecommendationType.HYBRID, alias="type", description="Algorithm to use"),
    svc: RecommendationService = Depends(recommendation_service),
):
    """
    Personalised recommendations.
    Served from the last live cache entry for (user, type) when one exists,
    otherwise generated and cached for 24h.
    """
    logger.info("Request: user_recommendations user_id=%s limit=%s type=%s", user_id, limit, rec_type.value)
    start_time = time.perf_counter()

    res = await svc.get_recommendations(user_id, limit, rec_type)

    logger.info(
        "Response: user_recommendations user_id=%s source=%s count=%s elapsed_time=%.4fs",
        user_id, res.source, res.count, time.perf_counter() - start_time,
    )
    return RecommendationsOut(
        user_id=res.user_id,
        recommendation_type=res.recommendation_type,
        recommendations=res.products,
        source=res.source,
        generated_at=res.generated_at,
        degradation=res.degradation,
        count=res.count,
    )


@router.get("/products/{product_id}/similar", response_model=ProductListOut)
async def similar_products(
    product_id: str,
    limit: int = Query(DEFAULT_SIMILAR_LIMIT, ge=1, le=50),
    svc: RecommendationService = Depends(recommendation_service),
):
    """Attribute-similar products (category, tags, price, name)."""
    logger.info("Request: similar_products product_id=%s limit=%s", product_id, limit)
    try:
        items = await svc.get_similar_products(product_id, limit)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info("Response: similar_products product_id=%s count=%s", product_id, len(items))
    return ProductListOut(items=items, count=len(items))


@router.get("/trending", response_model=ProductListOut)
async def trending_products(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    days: Optional[int] = Query(None, ge=1, le=365, description="Look-back window in days (default from settings)"),
    svc: RecommendationService = Depends(recommendation_service),
):
    t0 = time.perf_counter()
    items = await svc.get_trending_products(limit, days)
    logger.info(
        "Response: trending_products returned %s items in %.4fs with limit=%s days=%s",
        len(items), time.perf_counter() - t0, limit, days,
    )
    return ProductListOut(items=items, count=len(items))
