"""
Redis cache backend.

Values are stored with SETEX so Redis expires them on its own; connection
and timeout errors surface as ServiceUnavailableError.
"""

import logging
from typing import Optional

import redis
from redis.exceptions import RedisError

from files_manager.cache.base import KeyValueCache
from files_manager.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class RedisCache(KeyValueCache):
    """Redis implementation of the key-value cache."""

    def __init__(self, client: redis.Redis):
        self._redis = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 5.0) -> "RedisCache":
        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            decode_responses=True,
        )
        return cls(client)

    def get(self, key: str) -> Optional[str]:
        try:
            return self._redis.get(key)
        except RedisError as e:
            logger.error(f"Redis GET 失败: {e}")
            raise ServiceUnavailableError("Cache unavailable", backend="redis") from e

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._redis.setex(key, ttl_seconds, value)
        except RedisError as e:
            logger.error(f"Redis SETEX 失败: {e}")
            raise ServiceUnavailableError("Cache unavailable", backend="redis") from e

    def delete(self, key: str) -> bool:
        try:
            return self._redis.delete(key) > 0
        except RedisError as e:
            logger.error(f"Redis DEL 失败: {e}")
            raise ServiceUnavailableError("Cache unavailable", backend="redis") from e

    def is_alive(self) -> bool:
        try:
            return bool(self._redis.ping())
        except RedisError as e:
            logger.warning(f"Redis 不可用: {e}")
            return False

    def close(self) -> None:
        self._redis.close()
