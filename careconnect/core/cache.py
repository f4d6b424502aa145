"""Redis-backed read cache with explicit per-entity invalidation keys.

Values are stored as JSON with a TTL. When ``REDIS_URL`` is not configured the
cache is a no-op, and Redis failures degrade to cache misses so reads always
fall through to the database.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from .config import settings

logger = logging.getLogger(__name__)


def availability_key(provider_id: str, start_date: date, end_date: date) -> str:
    return f"availability:{provider_id}:{start_date.isoformat()}:{end_date.isoformat()}"


def availability_pattern(provider_id: str) -> str:
    return f"availability:{provider_id}:*"


def provider_key(provider_id: str) -> str:
    return f"provider:{provider_id}"


class Cache:
    """Thin async wrapper around a Redis client."""

    def __init__(self, client: redis.Redis | None = None, url: str | None = None, ttl: int | None = None):
        self._client = client
        self._url = url
        self.ttl = ttl if ttl is not None else settings.cache_ttl_seconds

    @property
    def enabled(self) -> bool:
        return self._client is not None or bool(self._url)

    def _get_client(self) -> redis.Redis | None:
        if self._client is None and self._url:
            self._client = redis.from_url(self._url, encoding="utf-8", decode_responses=True)
        return self._client

    async def get(self, key: str) -> Any | None:
        client = self._get_client()
        if client is None:
            return None
        try:
            raw = await client.get(key)
        except RedisError as exc:
            logger.warning("Cache get failed for %s: %s", key, exc)
            return None
        if raw is None:
            logger.debug("Cache miss: %s", key)
            return None
        logger.debug("Cache hit: %s", key)
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        client = self._get_client()
        if client is None:
            return False
        try:
            await client.set(key, json.dumps(value), ex=ttl or self.ttl)
        except RedisError as exc:
            logger.warning("Cache set failed for %s: %s", key, exc)
            return False
        return True

    async def delete(self, key: str) -> int:
        client = self._get_client()
        if client is None:
            return 0
        try:
            return await client.delete(key)
        except RedisError as exc:
            logger.warning("Cache delete failed for %s: %s", key, exc)
            return 0

    async def delete_pattern(self, pattern: str) -> int:
        client = self._get_client()
        if client is None:
            return 0
        try:
            keys = [key async for key in client.scan_iter(match=pattern)]
            if not keys:
                return 0
            return await client.delete(*keys)
        except RedisError as exc:
            logger.warning("Cache pattern delete failed for %s: %s", pattern, exc)
            return 0

    async def invalidate_availability(self, provider_id: str) -> int:
        return await self.delete_pattern(availability_pattern(provider_id))

    async def invalidate_provider(self, provider_id: str) -> int:
        return await self.delete(provider_key(provider_id))

    async def ping(self) -> bool:
        client = self._get_client()
        if client is None:
            return False
        try:
            return bool(await client.ping())
        except RedisError as exc:
            logger.warning("Cache ping failed: %s", exc)
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


cache = Cache(url=settings.redis_url)


def get_cache() -> Cache:
    """FastAPI dependency returning the process-wide cache."""
    return cache
