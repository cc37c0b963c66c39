"""
Redis caching for per-session views.

CACHING STRATEGY
================

What we cache:
  - The payment-status view of a session (JSON-serialized)
  - Key pattern: "sessions:{session_id}:{view}"

Why:
  - The bill card is re-rendered on every roster change and payment claim
    in a busy group chat, while its data changes only on those events

Invalidation:
  - Every join, leave, settlement, payment and proof for a session deletes
    all of that session's keys
  - Routes commit before invalidating, so a read racing the write cannot
    put the pre-commit view back
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

The cache is advisory. Redis disabled or failing means every read goes to
the database; no mutation ever depends on a cached value.
"""

import json
from typing import Optional

from kakibadminton.infrastructure.redis_client import get_redis
from kakibadminton.core.config import get_settings
from kakibadminton.core.metrics import record_cache_operation
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)


def _make_view_key(session_id: int, view: str) -> str:
    return f"sessions:{session_id}:{view}"


async def get_cached_view(session_id: int, view: str) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = _make_view_key(session_id, view)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=bool(data))
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_view(session_id: int, view: str, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_view_key(session_id, view)
    ttl = get_settings().REDIS_CACHE_TTL
    try:
        await client.setex(key, ttl, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=ttl)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_session_cache(session_id: int) -> None:
    """Drop every cached view of one session."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"sessions:{session_id}:*", count=100):
            await client.delete(key)
            deleted += 1
        logger.debug("cache_invalidated", session_id=session_id, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", session_id=session_id, error=str(e))


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
