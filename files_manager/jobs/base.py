"""
后台任务队列接口

生产者按队列名入队 JSON 载荷，消费者阻塞出队。
后端故障抛出 ServiceUnavailableError。
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from files_manager.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class Job(BaseModel):
    """队列中的单个任务"""

    job_id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="任务 ID")
    queue: str = Field(..., description="队列名称")
    payload: Dict[str, Any] = Field(default_factory=dict, description="任务载荷")
    enqueued_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="入队时间"
    )


class JobQueue(ABC):
    """任务队列抽象基类"""

    @abstractmethod
    def enqueue(self, queue_name: str, payload: Dict[str, Any]) -> Job:
        """
        入队

        Args:
            queue_name: 队列名称
            payload: 任务载荷（必须可 JSON 序列化）

        Returns:
            入队的任务
        """

    @abstractmethod
    def dequeue(self, queue_name: str, timeout: float = 0) -> Optional[Job]:
        """
        出队（先进先出）

        Args:
            queue_name: 队列名称
            timeout: 阻塞等待秒数，0 表示不等待

        Returns:
            任务，超时返回 None
        """

    @abstractmethod
    def size(self, queue_name: str) -> int:
        """队列长度"""

    @abstractmethod
    def is_alive(self) -> bool:
        """健康检查，不抛异常"""

    def close(self) -> None:
        """释放后端资源"""


def enqueue_quietly(queue: Optional[JobQueue], queue_name: str, payload: Dict[str, Any]) -> Optional[Job]:
    """
    入队但不向调用方传播队列故障

    记录已经持久化，队列不可用只记录警告，请求照常成功。
    """
    if queue is None:
        return None

    try:
        return queue.enqueue(queue_name, payload)
    except ServiceUnavailableError as e:
        logger.warning(f"任务入队失败 {queue_name} {payload}: {e.message}")
        return None
