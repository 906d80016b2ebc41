"""
会话管理

令牌是能力凭证：持有即身份。缓存中保存 auth_<token> -> user_id，
TTL 到期或显式登出后令牌失效，不支持续期。
"""

import logging
import secrets
from typing import Optional

from files_manager.cache import KeyValueCache
from files_manager.core.credentials import CredentialManager
from files_manager.errors import AuthFailure

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL_SECONDS = 24 * 60 * 60
DEFAULT_TOKEN_KEY_PREFIX = "auth_"


def generate_token() -> str:
    """生成高熵随机令牌（CSPRNG）"""
    return secrets.token_urlsafe(32)


class SessionManager:
    """
    会话令牌的签发、解析与撤销

    Args:
        credentials: 凭据管理器
        cache: 会话缓存（独占）
        ttl_seconds: 令牌有效期
        key_prefix: 缓存键前缀
    """

    def __init__(
        self,
        credentials: CredentialManager,
        cache: KeyValueCache,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        key_prefix: str = DEFAULT_TOKEN_KEY_PREFIX,
    ):
        self._credentials = credentials
        self._cache = cache
        self.ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    def _key(self, token: str) -> str:
        return f"{self._key_prefix}{token}"

    def login(self, email: str, password: str) -> str:
        """
        登录并签发新令牌

        Raises:
            AuthFailure: 凭据无效
            ServiceUnavailableError: 缓存不可用
        """
        user = self._credentials.verify(email, password)
        token = generate_token()
        self._cache.set(self._key(token), user.id, self.ttl_seconds)
        logger.info(f"用户 {user.id} 登录成功")
        return token

    def resolve(self, token: Optional[str]) -> str:
        """
        解析令牌对应的用户 ID（只读，不刷新 TTL）

        Raises:
            AuthFailure: 令牌缺失、未签发或已过期
            ServiceUnavailableError: 缓存不可用
        """
        if not token:
            raise AuthFailure()

        user_id = self._cache.get(self._key(token))
        if not user_id:
            raise AuthFailure()
        return user_id

    def revoke(self, token: Optional[str]) -> None:
        """
        撤销令牌，重复撤销会失败

        Raises:
            AuthFailure: 令牌不存在
        """
        user_id = self.resolve(token)
        if not self._cache.delete(self._key(token)):
            # 解析与删除之间已过期
            raise AuthFailure()
        logger.info(f"用户 {user_id} 已登出")


__all__ = [
    "SessionManager",
    "generate_token",
    "DEFAULT_TOKEN_TTL_SECONDS",
    "DEFAULT_TOKEN_KEY_PREFIX",
]
