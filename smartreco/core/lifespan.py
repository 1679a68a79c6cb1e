# smartreco/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from smartreco.db import mongo, redis as r
from smartreco.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo is mandatory
    try:
        await mongo.connect()
    except Exception as e:
        logger.error("mongo client init failed: %s", e)
        raise

    # Redis is optional
    if settings.REDIS_URL:
        await r.connect()
    else:
        logger.info("no REDIS_URL provided, skipping redis connection")

    yield

    # --- Shutdown ---
    try:
        await r.disconnect()
    except Exception as e:
        logger.warning("redis disconnect failed: %s", e)

    await mongo.disconnect()
    logger.info("mongo disconnected")
