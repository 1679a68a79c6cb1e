# smartreco/domain/repositories/user_repo.py
from __future__ import annotations
from typing import Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from smartreco.domain.models.product import User


class UserRepo:
    """Identity lookups on the 'users' collection."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "users"):
        self.col = db[collection_name]

    async def list_user_ids(self, exclude: Optional[str] = None) -> List[str]:
        query = {"user_id": {"$ne": exclude}} if exclude else {}
        cursor = self.col.find(query, {"_id": 0, "user_id": 1})
        return [doc["user_id"] async for doc in cursor if doc.get("user_id")]

    async def get_many_by_user_ids(self, ids: List[str]) -> Dict[str, User]:
        if not ids:
            return {}
        cursor = self.col.find({"user_id": {"$in": list(ids)}}, {"_id": 0, "user_id": 1, "name": 1, "email": 1, "role": 1})
        return {doc["user_id"]: User.model_validate(doc) async for doc in cursor}
