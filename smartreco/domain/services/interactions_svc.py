import logging
import math
import time
from typing import Any, Dict, Optional

from smartreco.domain.models.interaction import (
    Interaction,
    InteractionPage,
    InteractionStats,
    InteractionType,
    Pagination,
    ProductCount,
    TypeCount,
    UserCount,
)
from smartreco.domain.repositories.interaction_repo import InteractionRepo
from smartreco.domain.repositories.product_repo import ProductRepo
from smartreco.domain.repositories.user_repo import UserRepo

logger = logging.getLogger(__name__)

STATS_TOP_N = 10


class InteractionService:
    """
    Activity log: record events, page through a user's or a product's
    history, and summarise the whole log.
    """

    def __init__(self, interactions: InteractionRepo, products: ProductRepo, users: UserRepo):
        self.interactions = interactions
        self.products = products
        self.users = users

    @classmethod
    def from_db(cls, db) -> "InteractionService":
        return cls(InteractionRepo(db), ProductRepo(db), UserRepo(db))

    async def record(
        self,
        user_id: str,
        product_id: str,
        interaction_type: InteractionType,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Interaction:
        interaction = Interaction(
            user_id=user_id,
            product_id=product_id,
            interaction_type=interaction_type,
            metadata=metadata or {},
        )
        await self.interactions.insert(interaction)
        return interaction

    async def history_for_user(self, user_id: str, page: int, limit: int) -> InteractionPage:
        items, total = await self.interactions.page_by_user(user_id, (page - 1) * limit, limit)
        return _page(items, total, page, limit)

    async def history_for_product(self, product_id: str, page: int, limit: int) -> InteractionPage:
        items, total = await self.interactions.page_by_product(product_id, (page - 1) * limit, limit)
        return _page(items, total, page, limit)

    async def stats(self, top: int = STATS_TOP_N) -> InteractionStats:
        t0 = time.perf_counter()
        total = await self.interactions.count_all()
        by_type = await self.interactions.counts_by_type()
        top_products = await self.interactions.top_products(top)
        top_users = await self.interactions.top_users(top)

        # ids with no catalog/user record keep their count, without names
        products = {p.product_id: p for p in await self.products.get_many_by_product_ids([pid for pid, _ in top_products])}
        users = await self.users.get_many_by_user_ids([uid for uid, _ in top_users])

        stats = InteractionStats(
            total_interactions=total,
            by_type=[TypeCount(interaction_type=t, count=c) for t, c in by_type],
            most_interacted_products=[
                ProductCount(
                    product_id=pid,
                    count=count,
                    name=products[pid].name if pid in products else None,
                    category=products[pid].category if pid in products else None,
                )
                for pid, count in top_products
            ],
            most_active_users=[
                UserCount(
                    user_id=uid,
                    count=count,
                    name=users[uid].name if uid in users else None,
                    email=users[uid].email if uid in users else None,
                )
                for uid, count in top_users
            ],
        )
        logger.info("interactions stats total=%s types=%s time=%.3fs", total, len(by_type), time.perf_counter() - t0)
        return stats


def _page(items, total: int, page: int, limit: int) -> InteractionPage:
    return InteractionPage(
        items=items,
        pagination=Pagination(total=total, page=page, pages=math.ceil(total / limit), limit=limit),
    )
