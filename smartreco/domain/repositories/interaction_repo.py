# smartreco/domain/repositories/interaction_repo.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo import DESCENDING

from smartreco.domain.models.interaction import Interaction, InteractionType


def _type_values(types: Iterable[InteractionType]) -> List[str]:
    return [t.value if isinstance(t, InteractionType) else str(t) for t in types]


class InteractionRepo:
    """
    Interaction log backed by the 'interactions' collection.
    Documents: { user_id, product_id, interaction_type, timestamp, metadata }.
    Append-only: the core never updates or deletes interactions.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "interactions"):
        self.col: AsyncIOMotorCollection = db[collection_name]

    async def find_by_user(
        self,
        user_id: str,
        types: Optional[Iterable[InteractionType]] = None,
        newest_first: bool = False,
    ) -> List[Interaction]:
        query: Dict[str, Any] = {"user_id": user_id}
        if types:
            query["interaction_type"] = {"$in": _type_values(types)}
        cursor = self.col.find(query, {"_id": 0})
        if newest_first:
            cursor = cursor.sort("timestamp", DESCENDING)
        return [Interaction.model_validate(doc) async for doc in cursor]

    async def count_by_user(self, user_id: str) -> int:
        return await self.col.count_documents({"user_id": user_id})

    async def product_sets_by_user(self, user_ids: Iterable[str]) -> Dict[str, Set[str]]:
        """
        One aggregation instead of one query per user:
        { user_id: {product_id, ...} } for every listed user with >= 1 interaction.
        """
        ids = list(user_ids)
        if not ids:
            return {}
        pipeline: List[Dict[str, Any]] = [
            {"$match": {"user_id": {"$in": ids}}},
            {"$group": {"_id": "$user_id", "products": {"$addToSet": "$product_id"}}},
        ]
        docs = await self.col.aggregate(pipeline).to_list(length=None)
        return {d["_id"]: set(d.get("products") or []) for d in docs if d.get("products")}

    async def top_products(
        self,
        limit: int,
        exclude: Optional[Iterable[str]] = None,
        since: Optional[datetime] = None,
    ) -> List[Tuple[str, int]]:
        """
        Most-interacted products as [(product_id, count)], highest count first.
        - exclude: product_ids to leave out (backfill must not repeat items)
        - since: only count interactions at or after this instant (trending window)
        """
        if limit <= 0:
            return []
        match: Dict[str, Any] = {}
        if exclude:
            match["product_id"] = {"$nin": list(exclude)}
        if since is not None:
            match["timestamp"] = {"$gte": since}

        pipeline: List[Dict[str, Any]] = []
        if match:
            pipeline.append({"$match": match})
        pipeline += [
            {"$group": {"_id": "$product_id", "count": {"$sum": 1}}},
            # product_id as tie-breaker keeps pages stable between calls
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        docs = await self.col.aggregate(pipeline).to_list(length=limit)
        return [(d["_id"], int(d["count"])) for d in docs if d.get("_id") is not None]

    async def top_users(self, limit: int) -> List[Tuple[str, int]]:
        """Most active users as [(user_id, count)], highest count first."""
        if limit <= 0:
            return []
        pipeline: List[Dict[str, Any]] = [
            {"$group": {"_id": "$user_id", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        docs = await self.col.aggregate(pipeline).to_list(length=limit)
        return [(d["_id"], int(d["count"])) for d in docs if d.get("_id") is not None]

    async def counts_by_type(self) -> List[Tuple[str, int]]:
        """[(interaction_type, count)] over the whole log, most frequent first."""
        pipeline: List[Dict[str, Any]] = [
            {"$group": {"_id": "$interaction_type", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
        ]
        docs = await self.col.aggregate(pipeline).to_list(length=None)
        return [(d["_id"], int(d["count"])) for d in docs if d.get("_id") is not None]

    async def count_all(self) -> int:
        return await self.col.count_documents({})

    async def page_by_user(self, user_id: str, skip: int, limit: int) -> Tuple[List[Interaction], int]:
        return await self._page({"user_id": user_id}, skip, limit)

    async def page_by_product(self, product_id: str, skip: int, limit: int) -> Tuple[List[Interaction], int]:
        return await self._page({"product_id": product_id}, skip, limit)

    async def _page(self, query: Dict[str, Any], skip: int, limit: int) -> Tuple[List[Interaction], int]:
        """(items newest first, total matching) for one page of the log."""
        cursor = self.col.find(query, {"_id": 0}).sort("timestamp", DESCENDING).skip(skip).limit(limit)
        items = [Interaction.model_validate(doc) async for doc in cursor]
        total = await self.col.count_documents(query)
        return items, total

    async def insert(self, interaction: Interaction) -> None:
        doc = interaction.model_dump()
        doc["interaction_type"] = interaction.interaction_type.value
        await self.col.insert_one(doc)
