"""
Redis caching service for the What's On feed.

CACHING STRATEGY
================

What we cache:
  - Public feed responses (paginated, JSON-serialized)
  - Cache key pattern: "whatson:feed:<sorted query params>"

Why:
  - The feed is the busiest read and every page sums RSVPs per event
  - Events change rarely compared to how often the feed is read

Invalidation strategy:
  - On event create/update: delete all feed keys
  - On RSVP create/cancel: delete all feed keys (spots_booked changed)
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

  All feed keys start with "whatson:feed:" so we can SCAN and delete them.

Why NOT cache single events or RSVP views:
  - RSVP needs real-time capacity (stale data = overbooking)
  - Creator views must reflect their own writes immediately

Redis is optional: when it is disabled or unreachable every call here is a
no-op and the feed is served from PostgreSQL.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
from app.core.config import get_settings
from app.core.metrics import record_cache_operation
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

FEED_KEY_PREFIX = "whatson:feed:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except (RedisError, OSError) as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def make_feed_key(params: dict[str, Any]) -> str:
    """Stable key: None values dropped, params sorted, lists joined."""
    parts = []
    for name in sorted(params):
        value = params[name]
        if value is None or value == []:
            continue
        if isinstance(value, (list, tuple)):
            value = ",".join(sorted(str(v) for v in value))
        parts.append(f"{name}={value}")
    return FEED_KEY_PREFIX + "&".join(parts)


async def get_cached_feed(params: dict[str, Any]) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = make_feed_key(params)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except (RedisError, ValueError) as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_feed(params: dict[str, Any], data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    key = make_feed_key(params)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_feed_cache() -> None:
    """
    Invalidate all cached feed pages.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{FEED_KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except RedisError as e:
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
    except RedisError as e:
        return {"status": "error", "error": str(e)}
