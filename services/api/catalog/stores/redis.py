"""Redis store for caching read-mostly search aggregates.

Handles:
- Caching with TTL policies
- JSON payloads

TTL policies (configurable in settings):
- Facet counts: ~5 minutes
- Autocomplete suggestions: ~1 minute

Redis is optional: when it is not initialized every accessor raises
RuntimeError and callers treat that as a cache miss.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from catalog.settings import get_settings

# Key prefixes
PREFIX_FACETS = "catalog:facets:"
PREFIX_AUTOCOMPLETE = "catalog:ac:"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    # Validate connectivity early (especially for `rediss://` in production).
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


# ============================================================
# Generic cache operations
# ============================================================


async def cache_get(key: str) -> str | None:
    """Get value from cache.

    Args:
        key: Cache key.

    Returns:
        Cached value or None if not found.
    """
    return await _get_redis().get(key)


async def cache_set(key: str, value: str, ttl: int) -> None:
    """Set value in cache with TTL.

    Args:
        key: Cache key.
        value: Value to cache.
        ttl: Time-to-live in seconds.
    """
    await _get_redis().setex(key, ttl, value)


async def cache_get_json(key: str) -> Any | None:
    """Get JSON value from cache, or None if missing."""
    value = await cache_get(key)
    if value:
        return json.loads(value)
    return None


async def cache_set_json(key: str, value: Any, ttl: int) -> None:
    """Set JSON value in cache."""
    await cache_set(key, json.dumps(value), ttl)


# ============================================================
# Search aggregate caches
# ============================================================


async def get_facets_cache() -> dict[str, Any] | None:
    return await cache_get_json(f"{PREFIX_FACETS}verified")


async def set_facets_cache(payload: dict[str, Any]) -> None:
    await cache_set_json(f"{PREFIX_FACETS}verified", payload, get_settings().facet_cache_ttl)


async def get_autocomplete_cache(field: str, prefix: str) -> list[str] | None:
    return await cache_get_json(f"{PREFIX_AUTOCOMPLETE}{field}:{prefix.lower()}")


async def set_autocomplete_cache(field: str, prefix: str, values: list[str]) -> None:
    await cache_set_json(
        f"{PREFIX_AUTOCOMPLETE}{field}:{prefix.lower()}",
        values,
        get_settings().autocomplete_cache_ttl,
    )
