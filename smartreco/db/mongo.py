# smartreco/db/mongo.py
import logging

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from smartreco.core.config import get_settings

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_db() -> AsyncIOMotorDatabase:
    assert _db is not None, "Mongo DB not initialized"
    return _db


def _new_client(uri: str) -> AsyncIOMotorClient:
    kwargs = dict(
        uuidRepresentation="standard",
        serverSelectionTimeoutMS=6000,
        connectTimeoutMS=6000,
    )
    # Atlas SRV URIs imply TLS; containers often lack a system CA bundle
    if uri.startswith("mongodb+srv://"):
        kwargs.update(tls=True, tlsCAFile=certifi.where())
    return AsyncIOMotorClient(uri, **kwargs)


async def connect():
    """
    Create the Motor client and ping it.
    A failed ping does not abort startup: the client connects lazily on the
    first real query, so requests recover once the network is back.
    """
    global _client, _db
    settings = get_settings()

    _client = _new_client(settings.MONGO_URI)
    _db = _client[settings.MONGO_DB]
    try:
        await _client.admin.command("ping")
        logger.info("mongo connected db=%s", settings.MONGO_DB)
    except Exception as e:
        logger.warning("mongo ping at startup failed, will connect lazily: %s", e)
        return

    try:
        await ensure_indexes(_db)
    except Exception as e:
        logger.warning("mongo ensure_indexes failed: %s", e)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Indexes the recommendation core relies on.
    `recommendations.expires_at` carries a TTL index so stale cache entries are
    reclaimed by the server; reads filter on expires_at anyway.
    """
    await db["interactions"].create_index(
        [("user_id", ASCENDING), ("product_id", ASCENDING), ("interaction_type", ASCENDING)]
    )
    await db["interactions"].create_index([("user_id", ASCENDING), ("timestamp", DESCENDING)])
    await db["interactions"].create_index([("product_id", ASCENDING), ("timestamp", DESCENDING)])
    await db["products"].create_index("product_id", unique=True)
    await db["users"].create_index("user_id", unique=True)
    await db["recommendations"].create_index(
        [("user_id", ASCENDING), ("recommendation_type", ASCENDING), ("generated_at", DESCENDING)]
    )
    await db["recommendations"].create_index("expires_at", expireAfterSeconds=0)
    logger.info("mongo indexes ensured")


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None
