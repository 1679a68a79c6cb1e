# smartreco/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Iterable, Optional, List
from motor.motor_asyncio import AsyncIOMotorDatabase
from smartreco.domain.models.product import Product

_PROJECTION = {
    "_id": 0,
    "product_id": 1,
    "name": 1,
    "category": 1,
    "description": 1,
    "price": 1,
    "image_url": 1,
    "tags": 1,
    "created_at": 1,
    "updated_at": 1,
}


class ProductRepo:
    """
    Product repository backed by the 'products' collection.
    Read-only from the recommendation core's point of view.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]

    async def get_by_product_id(self, product_id: str) -> Optional[Product]:
        doc = await self.col.find_one({"product_id": product_id}, _PROJECTION)
        return Product.model_validate(doc) if doc else None

    async def find_many(self, exclude: Optional[Iterable[str]] = None) -> List[Product]:
        """All products, optionally minus a set of product_ids (candidate scans)."""
        query = {"product_id": {"$nin": list(exclude)}} if exclude else {}
        cursor = self.col.find(query, _PROJECTION)
        return [Product.model_validate(doc) async for doc in cursor]

    async def get_many_by_product_ids(self, ids: List[str]) -> List[Product]:
        """
        Batch fetch for response hydration.
        Keeps the order of `ids`; ids with no product (deleted since) are dropped.
        """
        if not ids:
            return []
        cursor = self.col.find({"product_id": {"$in": list(ids)}}, _PROJECTION)
        by_id = {doc["product_id"]: doc async for doc in cursor}
        return [Product.model_validate(by_id[pid]) for pid in ids if pid in by_id]
