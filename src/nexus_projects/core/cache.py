"""Best-effort JSON key/TTL cache on top of the optional Redis client.

The cache is an optimization only. Every read or write failure is logged and
reported as a miss, so callers never have to handle cache errors.
"""

import json
from typing import Any

from src.nexus_projects.core.logging import get_logger
from src.nexus_projects.core.redis import get_redis

logger = get_logger(__name__)

PREFIX_USER_SCOPE = "user_scope"


def user_scope_key(subject: str) -> str:
    return f"{PREFIX_USER_SCOPE}:{subject}"


async def get_json(key: str) -> dict[str, Any] | None:
    """Read a cached JSON object.

    Returns:
        The decoded object, or None on a miss, when Redis is unavailable,
        or when the stored value cannot be decoded.
    """
    try:
        redis = await get_redis()
        if not redis:
            return None
        raw = await redis.get(key)
        if raw is None:
            return None
        value = json.loads(raw)
        return value if isinstance(value, dict) else None
    except Exception as e:
        logger.warning("Cache get failed", key=key, error=str(e))
        return None


async def set_json(key: str, value: dict[str, Any], ttl: int) -> bool:
    """Write a JSON object with a TTL.

    Returns:
        True if stored, False if Redis is unavailable or the write failed.
    """
    try:
        redis = await get_redis()
        if not redis:
            return False
        await redis.setex(key, ttl, json.dumps(value))
        return True
    except Exception as e:
        logger.warning("Cache set failed", key=key, error=str(e))
        return False
