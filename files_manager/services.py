"""
服务装配

进程启动时按配置构建一次所有后端与核心服务，显式传递给 API 与 Worker，
不使用模块级全局单例。
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import Config, get_config
from files_manager.cache import KeyValueCache, MemoryCache, RedisCache
from files_manager.core import (
    CredentialManager,
    FileAccessController,
    SessionManager,
    UserDirectory,
)
from files_manager.db import PersistentStore
from files_manager.jobs import JobQueue, MemoryJobQueue, RedisJobQueue
from files_manager.storage import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """应用服务容器"""

    config: Config
    store: PersistentStore
    cache: KeyValueCache
    queue: JobQueue
    blobs: BlobStore
    credentials: CredentialManager
    sessions: SessionManager
    users: UserDirectory
    files: FileAccessController

    def close(self) -> None:
        """释放所有后端连接"""
        for name, resource in (("queue", self.queue), ("cache", self.cache), ("store", self.store)):
            try:
                resource.close()
            except Exception as e:
                logger.warning(f"关闭 {name} 时出错: {e}")


def build_cache(config: Config) -> KeyValueCache:
    if config.cache.backend == "redis":
        return RedisCache.from_url(config.cache.redis_url, socket_timeout=config.cache.socket_timeout)
    return MemoryCache(max_size=config.cache.max_size)


def build_queue(config: Config) -> JobQueue:
    if config.queue.backend == "redis":
        return RedisJobQueue.from_url(
            config.queue.redis_url,
            key_prefix=config.queue.key_prefix,
            socket_timeout=config.queue.socket_timeout,
            socket_connect_timeout=config.queue.socket_connect_timeout,
        )
    return MemoryJobQueue()


def build_services(
    config: Optional[Config] = None,
    cache: Optional[KeyValueCache] = None,
    queue: Optional[JobQueue] = None,
) -> ServiceContainer:
    """
    构建服务容器

    Args:
        config: 配置，默认加载全局配置
        cache: 覆盖会话缓存后端
        queue: 覆盖任务队列后端

    Returns:
        ServiceContainer
    """
    config = config or get_config()

    store = PersistentStore(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        connect_timeout=config.database.connect_timeout,
    )
    store.create_all()

    cache = cache or build_cache(config)
    queue = queue or build_queue(config)
    blobs = BlobStore(Path(config.storage.folder_path).expanduser())

    credentials = CredentialManager(store)
    sessions = SessionManager(
        credentials,
        cache,
        ttl_seconds=config.auth.token_ttl_seconds,
        key_prefix=config.auth.token_key_prefix,
    )
    users = UserDirectory(store, credentials, queue=queue, user_queue=config.queue.user_queue)
    files = FileAccessController(
        store,
        blobs,
        queue=queue,
        file_queue=config.queue.file_queue,
        page_size=config.api.page_size,
        thumbnail_widths=config.storage.thumbnail_widths,
    )

    logger.info(
        f"服务初始化完成: database={store.engine.url}, "
        f"cache={config.cache.backend}, queue={config.queue.backend}"
    )

    return ServiceContainer(
        config=config,
        store=store,
        cache=cache,
        queue=queue,
        blobs=blobs,
        credentials=credentials,
        sessions=sessions,
        users=users,
        files=files,
    )


__all__ = [
    "ServiceContainer",
    "build_cache",
    "build_queue",
    "build_services",
]
