"""
后台任务队列模块
"""

from .base import Job, JobQueue, enqueue_quietly
from .memory import MemoryJobQueue
from .redis_queue import RedisJobQueue

__all__ = [
    "Job",
    "JobQueue",
    "enqueue_quietly",
    "MemoryJobQueue",
    "RedisJobQueue",
]
