"""
内存任务队列

进程内实现，供开发与测试使用；API 与 Worker 位于同一进程时可用。
"""

import threading
import time
from collections import defaultdict, deque
from typing import Any, Deque, Dict, Optional

from files_manager.jobs.base import Job, JobQueue


class MemoryJobQueue(JobQueue):
    """基于 deque + Condition 的线程安全队列"""

    def __init__(self):
        self._queues: Dict[str, Deque[Job]] = defaultdict(deque)
        self._condition = threading.Condition()

    def enqueue(self, queue_name: str, payload: Dict[str, Any]) -> Job:
        job = Job(queue=queue_name, payload=dict(payload))
        with self._condition:
            self._queues[queue_name].append(job)
            self._condition.notify_all()
        return job

    def dequeue(self, queue_name: str, timeout: float = 0) -> Optional[Job]:
        deadline = time.monotonic() + timeout
        with self._condition:
            while not self._queues[queue_name]:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._condition.wait(remaining)
            return self._queues[queue_name].popleft()

    def size(self, queue_name: str) -> int:
        with self._condition:
            return len(self._queues[queue_name])

    def is_alive(self) -> bool:
        return True
