from fastapi import APIRouter, Depends, Query
import time
import logging

from smartreco.api.deps import interaction_service
from smartreco.api.v1.schemas.reco import InteractionIn, InteractionOut
from smartreco.domain.models.interaction import InteractionPage, InteractionStats
from smartreco.domain.services.interactions_svc import InteractionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interactions", tags=["interactions"])


@router.post("", status_code=201, response_model=InteractionOut)
async def record_interaction(
    payload: InteractionIn,
    svc: InteractionService = Depends(interaction_service),
):
    """Append one user activity event; timestamped server-side."""
    interaction = await svc.record(payload.user_id, payload.product_id, payload.interaction_type, payload.metadata)
    logger.info(
        "Response: record_interaction user_id=%s product_id=%s type=%s",
        interaction.user_id, interaction.product_id, interaction.interaction_type.value,
    )
    return InteractionOut(**interaction.model_dump())


@router.get("/users/{user_id}", response_model=InteractionPage)
async def interactions_by_user(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    svc: InteractionService = Depends(interaction_service),
):
    logger.info("Request: interactions_by_user user_id=%s page=%s limit=%s", user_id, page, limit)
    res = await svc.history_for_user(user_id, page, limit)
    logger.info("Response: interactions_by_user user_id=%s count=%s total=%s", user_id, len(res.items), res.pagination.total)
    return res


@router.get("/products/{product_id}", response_model=InteractionPage)
async def interactions_by_product(
    product_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    svc: InteractionService = Depends(interaction_service),
):
    logger.info("Request: interactions_by_product product_id=%s page=%s limit=%s", product_id, page, limit)
    res = await svc.history_for_product(product_id, page, limit)
    logger.info(
        "Response: interactions_by_product product_id=%s count=%s total=%s",
        product_id, len(res.items), res.pagination.total,
    )
    return res


@router.get("/stats", response_model=InteractionStats)
async def interaction_stats(svc: InteractionService = Depends(interaction_service)):
    """Totals by type, most interacted products and most active users."""
    t0 = time.perf_counter()
    stats = await svc.stats()
    logger.info("Response: interaction_stats total=%s in %.4fs", stats.total_interactions, time.perf_counter() - t0)
    return stats
