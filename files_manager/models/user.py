"""
用户模型
"""

from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """用户资料（从不包含密码摘要）"""

    id: str = Field(..., description="用户 ID")
    email: str = Field(..., description="邮箱")


class UserCreateRequest(BaseModel):
    """注册请求"""

    email: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    """登录响应"""

    token: str
