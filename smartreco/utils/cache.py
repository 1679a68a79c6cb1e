import hashlib
import json
from typing import Any, Optional
from redis.asyncio import Redis


def cache_key(prefix: str, params: dict) -> str:
    """Stable key from a prefix and a JSON-able parameter dict."""
    digest = hashlib.md5(json.dumps(params, sort_keys=True, default=str).encode()).hexdigest()
    return f"{prefix}:{digest}"


async def cache_get(redis: Optional[Redis], key: str) -> Any:
    if redis is None:
        return None
    if val := await redis.get(key):
        return json.loads(val)
    return None


async def cache_set(redis: Optional[Redis], key: str, value, ex: int = 60) -> None:
    if redis is None:
        return
    await redis.set(key, json.dumps(value, default=str), ex=ex)
