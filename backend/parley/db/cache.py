"""
Redis-backed verification cache for short-lived codes.
"""
import json
import logging
from functools import lru_cache
from typing import Optional

import redis

from parley.core.config import settings
from parley.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class VerificationCache:
    """
    Key -> JSON payload store with TTL.

    Redis expiry is only advisory; callers re-check the payload's own
    ``expires_at`` before trusting it.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    def set(self, key: str, value: dict, ttl_seconds: int) -> None:
        try:
            self.client.set(key, json.dumps(value), ex=ttl_seconds)
        except redis.RedisError as e:
            logger.error(f"Redis set failed for key {key}: {e}")
            raise ServiceUnavailableError("Verification service temporarily unavailable") from e

    def get(self, key: str) -> Optional[str]:
        """Return the raw stored payload, or None when missing."""
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            logger.error(f"Redis get failed for key {key}: {e}")
            raise ServiceUnavailableError("Verification service temporarily unavailable") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            logger.error(f"Redis delete failed for key {key}: {e}")
            raise ServiceUnavailableError("Verification service temporarily unavailable") from e


@lru_cache(maxsize=1)
def get_redis_pool() -> redis.ConnectionPool:
    """Connection pool built on first use and shared afterwards."""
    return redis.ConnectionPool.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )


def get_cache() -> VerificationCache:
    """Dependency for the verification cache."""
    return VerificationCache(redis.Redis(connection_pool=get_redis_pool()))
