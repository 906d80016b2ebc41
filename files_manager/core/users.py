"""
用户目录

注册账户、返回调用者自己的资料。不提供按 ID 查询任意用户的接口。
"""

import logging
from typing import Optional

from files_manager.core.credentials import CredentialManager
from files_manager.db import PersistentStore
from files_manager.errors import ConflictError, NotFoundError, ValidationError
from files_manager.jobs import JobQueue, enqueue_quietly
from files_manager.models import User

logger = logging.getLogger(__name__)


class UserDirectory:
    """
    用户注册与资料查询

    Args:
        store: 持久化存储
        credentials: 凭据管理器（提供密码摘要）
        queue: 任务队列，注册成功后投递欢迎任务
        user_queue: 欢迎任务队列名称
    """

    def __init__(
        self,
        store: PersistentStore,
        credentials: CredentialManager,
        queue: Optional[JobQueue] = None,
        user_queue: str = "userQueue",
    ):
        self._store = store
        self._credentials = credentials
        self._queue = queue
        self._user_queue = user_queue

    def register(self, email: Optional[str], password: Optional[str]) -> User:
        """
        注册新用户

        Raises:
            ValidationError: 缺少邮箱或密码
            ConflictError: 邮箱已存在
        """
        if not email:
            raise ValidationError("Missing email", field="email")
        if not password:
            raise ValidationError("Missing password", field="password")

        if self._store.find_user_by_email(email) is not None:
            raise ConflictError("Already exist")

        # 并发注册由唯一约束兜底，insert_user 同样抛出 ConflictError
        user = self._store.insert_user(email, self._credentials.hash(password))
        logger.info(f"新用户注册: {user.id}")

        enqueue_quietly(self._queue, self._user_queue, {"userId": user.id})
        return user

    def me(self, user_id: str) -> User:
        """
        返回当前会话身份对应的用户资料

        Raises:
            NotFoundError: 用户不存在
        """
        user = self._store.get_user(user_id)
        if user is None:
            raise NotFoundError("Not found", resource_id=user_id)
        return user


__all__ = ["UserDirectory"]
