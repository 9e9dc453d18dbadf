"""
Redis caching for the published event listing.

What we cache:
  - The serialized published-events listing response.
  - Key pattern: "events:published:v1".

Invalidation:
  - Event created or status changed: the listing itself changes.
  - Checkout or refund: remaining capacity shown in the listing changes.
  - TTL (REDIS_CACHE_TTL) as a safety net.

The cached remaining counts are display-only; checkout never reads them.
When Redis is disabled or unreachable every call degrades to a miss.
"""

import json
from typing import Optional

import redis.asyncio as redis
from ticketing.core.config import get_settings
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

EVENT_LIST_PREFIX = "events:published:"
EVENT_LIST_KEY = EVENT_LIST_PREFIX + "v1"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
                retry_on_timeout=True,
            )
            await client.ping()
            _redis_client = client
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            return None

    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_cached_event_list() -> Optional[list]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(EVENT_LIST_KEY)
    except Exception as e:
        logger.error("cache_get_error", key=EVENT_LIST_KEY, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    return json.loads(data) if data else None


async def set_cached_event_list(events: list) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(EVENT_LIST_KEY, settings.REDIS_CACHE_TTL, json.dumps(events, default=str))
        logger.debug("cache_set", key=EVENT_LIST_KEY, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=EVENT_LIST_KEY, error=str(e))


async def invalidate_event_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=EVENT_LIST_PREFIX + "*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
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
