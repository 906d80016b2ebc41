"""
Redis 任务队列

每个队列是一个 Redis 列表：LPUSH 入队，BRPOP 阻塞出队，保证先进先出。
API 进程与 Worker 进程通过同一个 Redis 实例共享队列。
"""

import json
import logging
from typing import Any, Dict, Optional

import redis
from redis.exceptions import RedisError

from files_manager.errors import ServiceUnavailableError
from files_manager.jobs.base import Job, JobQueue

logger = logging.getLogger(__name__)


class RedisJobQueue(JobQueue):
    """
    Redis 列表队列

    Args:
        client: Redis 客户端（decode_responses=True）
        key_prefix: 队列键前缀
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "files_manager:queue"):
        self._redis = client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(
        cls,
        url: str,
        key_prefix: str = "files_manager:queue",
        socket_timeout: Optional[float] = 10.0,
        socket_connect_timeout: Optional[float] = 5.0,
    ) -> "RedisJobQueue":
        """
        按 URL 创建队列

        socket_timeout 必须大于 Worker 的 BRPOP 等待时间，否则空闲轮询会被当作故障。
        """
        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            decode_responses=True,
        )
        return cls(client, key_prefix=key_prefix)

    def _queue_key(self, queue_name: str) -> str:
        return f"{self._key_prefix}:{queue_name}"

    def enqueue(self, queue_name: str, payload: Dict[str, Any]) -> Job:
        job = Job(queue=queue_name, payload=dict(payload))
        try:
            self._redis.lpush(self._queue_key(queue_name), job.model_dump_json())
        except RedisError as e:
            raise ServiceUnavailableError("Queue unavailable", backend="redis") from e
        return job

    def dequeue(self, queue_name: str, timeout: float = 0) -> Optional[Job]:
        key = self._queue_key(queue_name)
        try:
            if timeout > 0:
                item = self._redis.brpop([key], timeout=timeout)
                raw = item[1] if item else None
            else:
                raw = self._redis.rpop(key)
        except RedisError as e:
            raise ServiceUnavailableError("Queue unavailable", backend="redis") from e

        if raw is None:
            return None

        try:
            return Job.model_validate(json.loads(raw))
        except ValueError as e:
            # 格式损坏的任务直接丢弃
            logger.error(f"丢弃无法解析的任务 {queue_name}: {e}")
            return None

    def size(self, queue_name: str) -> int:
        try:
            return self._redis.llen(self._queue_key(queue_name))
        except RedisError as e:
            raise ServiceUnavailableError("Queue unavailable", backend="redis") from e

    def is_alive(self) -> bool:
        try:
            return bool(self._redis.ping())
        except RedisError as e:
            logger.warning(f"Redis 队列不可用: {e}")
            return False

    def close(self) -> None:
        self._redis.close()
