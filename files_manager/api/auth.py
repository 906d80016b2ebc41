"""
认证模块

Basic 认证登录换取会话令牌，后续请求通过 X-Token 头携带令牌。
提供 FastAPI 依赖：服务容器、当前用户（必需/可选）。
"""

import base64
import binascii
import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Header, Request, Response, status

from files_manager.errors import AuthFailure, ServiceUnavailableError
from files_manager.models import TokenResponse
from files_manager.services import ServiceContainer

logger = logging.getLogger(__name__)


# ===== 依赖 =====

def get_services(request: Request) -> ServiceContainer:
    """从应用状态获取服务容器"""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise ServiceUnavailableError("Service not ready")
    return services


def get_current_user_id(
    x_token: Optional[str] = Header(None, alias="X-Token"),
    services: ServiceContainer = Depends(get_services),
) -> str:
    """
    解析 X-Token 对应的用户 ID

    Raises:
        AuthFailure: 令牌缺失或无效
    """
    return services.sessions.resolve(x_token)


def get_optional_user_id(
    x_token: Optional[str] = Header(None, alias="X-Token"),
    services: ServiceContainer = Depends(get_services),
) -> Optional[str]:
    """
    获取当前用户（可选）

    未提供或无效的令牌视为匿名访问；缓存故障仍然向上抛出。
    """
    if not x_token:
        return None

    try:
        return services.sessions.resolve(x_token)
    except AuthFailure:
        return None


def parse_basic_auth(authorization: Optional[str]) -> Tuple[str, str]:
    """
    解析 Authorization: Basic base64(email:password)

    Raises:
        AuthFailure: 头缺失或格式错误
    """
    if not authorization or not authorization.startswith("Basic "):
        raise AuthFailure()

    try:
        credentials = base64.b64decode(authorization[len("Basic "):].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise AuthFailure()

    email, separator, password = credentials.partition(":")
    if not separator or not email or not password:
        raise AuthFailure()

    return email, password


# ===== 认证端点 =====

auth_router = APIRouter(tags=["认证"])


@auth_router.get("/connect", response_model=TokenResponse)
def connect(
    authorization: Optional[str] = Header(None),
    services: ServiceContainer = Depends(get_services),
):
    """
    用户登录

    使用 Basic 认证登录，返回 24 小时有效的会话令牌。
    """
    email, password = parse_basic_auth(authorization)
    token = services.sessions.login(email, password)
    return TokenResponse(token=token)


@auth_router.get("/disconnect", status_code=status.HTTP_204_NO_CONTENT)
def disconnect(
    x_token: Optional[str] = Header(None, alias="X-Token"),
    services: ServiceContainer = Depends(get_services),
):
    """用户登出，令牌立即失效"""
    services.sessions.revoke(x_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = [
    "get_services",
    "get_current_user_id",
    "get_optional_user_id",
    "parse_basic_auth",
    "auth_router",
]
