"""
用户路由
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status

from files_manager.api.auth import get_current_user_id, get_services
from files_manager.models import User, UserCreateRequest
from files_manager.services import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
def create_user(
    request: Optional[UserCreateRequest] = Body(None),
    services: ServiceContainer = Depends(get_services),
):
    """
    注册用户

    - email: 邮箱（唯一）
    - password: 密码
    """
    request = request or UserCreateRequest()
    return services.users.register(request.email, request.password)


@router.get("/me", response_model=User)
def get_me(
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """返回当前登录用户的资料"""
    return services.users.me(user_id)
