"""
凭据管理

密码只以摘要形式存储。摘要是确定性的（无逐用户盐值），因此可以直接按
(email, 摘要) 精确匹配查询；代价是相同密码得到相同摘要，这是已知的弱点。
"""

import logging

from passlib.context import CryptContext

from files_manager.db import PersistentStore
from files_manager.errors import AuthFailure
from files_manager.models import User

logger = logging.getLogger(__name__)

# 无盐 SHA-256 十六进制摘要
pwd_context = CryptContext(schemes=["hex_sha256"])


class CredentialManager:
    """密码摘要与凭据校验"""

    def __init__(self, store: PersistentStore):
        self._store = store

    @staticmethod
    def hash(password: str) -> str:
        """计算密码摘要（确定性、不可逆）"""
        return pwd_context.hash(password)

    def verify(self, email: str, password: str) -> User:
        """
        校验凭据

        邮箱不存在与密码错误返回同一种失败，调用方无法区分。

        Raises:
            AuthFailure: 凭据无效
        """
        if not email or not password:
            raise AuthFailure()

        user = self._store.find_user_by_credentials(email, self.hash(password))
        if user is None:
            raise AuthFailure()
        return user


__all__ = ["CredentialManager", "pwd_context"]
