"""
会话缓存模块

提供内存与 Redis 两种 TTL 键值缓存后端
"""

from .base import KeyValueCache
from .memory import MemoryCache, CacheEntry
from .redis_cache import RedisCache

__all__ = [
    "KeyValueCache",
    "MemoryCache",
    "CacheEntry",
    "RedisCache",
]
