"""
Redis caching service for the trek listing.

CACHING STRATEGY
================

What we cache:
  - The trek listing response (JSON-serialized), one key per
    "upcoming-from" date: "treks:list:from={date}"

Why:
  - The listing aggregates every batch of every trek and is the landing page
    of the admin panel
  - It changes only when a trek or batch is written

Invalidation strategy:
  - Every aggregate create/update and every batch status change deletes all
    "treks:list:*" keys (SCAN + DELETE)
  - The key embeds today's date, so yesterday's "upcoming" view is never served
  - TTL-based expiry as safety net

Redis errors are logged and treated as cache misses.
"""

import json
from datetime import date
from typing import Optional

from trekadmin.core.config import get_settings
from trekadmin.core.logging import get_logger
from trekadmin.core.metrics import record_cache_operation
from trekadmin.infrastructure.redis_client import get_redis

logger = get_logger(__name__)

TREK_LIST_PREFIX = "treks:list:"


def _make_trek_list_key(today: date) -> str:
    return f"{TREK_LIST_PREFIX}from={today.isoformat()}"


async def get_cached_treks(today: date) -> Optional[dict]:
    """Retrieve cached trek list response."""
    client = await get_redis()
    if not client:
        return None

    key = _make_trek_list_key(today)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_treks(today: date, data: dict) -> None:
    """Cache trek list response with TTL."""
    client = await get_redis()
    if not client:
        return

    settings = get_settings()
    key = _make_trek_list_key(today)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_trek_cache() -> None:
    """
    Invalidate all cached trek listings.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{TREK_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
