"""Redis client — crawl results with TTL."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from pydantic import ValidationError
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from noon.api.schemas import CrawlResult

logger = logging.getLogger(__name__)

KEY_PREFIX = "crawl:"


class RedisCache:
    """Thin async wrapper around Redis holding finished crawl results."""

    def __init__(self, client: redis.Redis, default_ttl: int = 3600) -> None:
        self._client = client
        self._default_ttl = default_ttl

    async def get(self, task_id: str) -> CrawlResult | None:
        """Return the cached result, or ``None`` on miss / error / unreadable entry."""
        try:
            raw = await self._client.get(f"{KEY_PREFIX}{task_id}")
        except redis.RedisError:
            logger.warning("cache get failed", extra={"task_id": task_id}, exc_info=True)
            return None
        if raw is None:
            logger.debug("cache miss", extra={"task_id": task_id})
            return None
        try:
            result = CrawlResult.model_validate_json(raw)
        except ValidationError:
            logger.warning("cache entry unreadable", extra={"task_id": task_id}, exc_info=True)
            return None
        logger.debug("cache hit", extra={"task_id": task_id})
        return result

    async def set(
        self, task_id: str, result: CrawlResult, ttl: int | None = None
    ) -> bool:
        """Store *result* with a TTL. Returns ``False`` on error."""
        effective_ttl = ttl if ttl is not None else self._default_ttl
        try:
            await self._client.set(
                f"{KEY_PREFIX}{task_id}",
                result.model_dump_json(by_alias=True),
                ex=effective_ttl,
            )
        except redis.RedisError:
            logger.warning("cache set failed", extra={"task_id": task_id}, exc_info=True)
            return False
        logger.debug("cache set", extra={"task_id": task_id, "ttl": effective_ttl, "status": result.status})
        return True


async def create_redis_client(redis_url: str) -> redis.Redis:
    # Strip credentials for logging (everything before @ if present)
    safe_url = redis_url.split("@")[-1] if "@" in redis_url else redis_url
    logger.info("connecting to redis", extra={"redis_url": safe_url})
    retry = Retry(ExponentialBackoff(), retries=3)
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
        retry=retry,
        retry_on_error=[redis.ConnectionError, redis.TimeoutError],
    )
