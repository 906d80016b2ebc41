"""
数据模型

导出用户与文件记录模型
"""

from .user import User, UserCreateRequest, TokenResponse
from .file import (
    ROOT_PARENT_ID,
    FileType,
    FileRecord,
    FileCreateRequest,
    normalize_parent_id,
)

__all__ = [
    "User",
    "UserCreateRequest",
    "TokenResponse",
    "ROOT_PARENT_ID",
    "FileType",
    "FileRecord",
    "FileCreateRequest",
    "normalize_parent_id",
]
