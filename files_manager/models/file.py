"""
文件记录模型

定义文件/文件夹/图片记录及创建请求
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


ROOT_PARENT_ID = 0


class FileType(str, Enum):
    """文件类型（封闭集合）"""

    FOLDER = "folder"
    FILE = "file"
    IMAGE = "image"

    @property
    def has_payload(self) -> bool:
        """该类型是否携带二进制内容"""
        return self is not FileType.FOLDER


class FileRecord(BaseModel):
    """
    文件元数据记录

    storage_ref 指向内容存储中的二进制数据，从不序列化给客户端。
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="文件 ID")
    owner_id: str = Field(..., alias="userId", description="所有者用户 ID")
    name: str = Field(..., description="显示名称")
    type: FileType = Field(..., description="文件类型")
    is_public: bool = Field(default=False, alias="isPublic", description="是否公开")
    parent_id: Optional[str] = Field(default=None, alias="parentId", description="父文件夹 ID，None 表示根目录")
    storage_ref: Optional[str] = Field(default=None, exclude=True, description="内容存储引用")

    @field_validator("parent_id", mode="before")
    @classmethod
    def validate_parent_id(cls, v: Any) -> Optional[str]:
        return normalize_parent_id(v)

    @field_serializer("parent_id")
    def serialize_parent_id(self, parent_id: Optional[str]) -> Union[str, int]:
        # 根目录按客户端约定输出为 0
        return parent_id if parent_id is not None else ROOT_PARENT_ID


class FileCreateRequest(BaseModel):
    """文件创建请求（字段校验由核心层完成，以返回统一的 400 错误）"""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    type: Optional[str] = None
    parent_id: Optional[Union[str, int]] = Field(default=None, alias="parentId")
    is_public: bool = Field(default=False, alias="isPublic")
    data: Optional[str] = Field(default=None, description="Base64 编码的文件内容")


def normalize_parent_id(parent_id: Optional[Union[str, int]]) -> Optional[str]:
    """将 0 / "0" / 空值统一为根目录 None"""
    if parent_id is None:
        return None
    value = str(parent_id).strip()
    if value in ("", str(ROOT_PARENT_ID)):
        return None
    return value


__all__ = [
    "ROOT_PARENT_ID",
    "FileType",
    "FileRecord",
    "FileCreateRequest",
    "normalize_parent_id",
]
