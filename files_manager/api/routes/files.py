"""
文件管理路由

处理文件创建、查询、列表、发布与内容下载
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import Response

from files_manager.api.auth import get_current_user_id, get_optional_user_id, get_services
from files_manager.core import decode_payload
from files_manager.errors import ValidationError
from files_manager.models import FileCreateRequest, FileRecord, normalize_parent_id
from files_manager.services import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_page(page: Optional[str]) -> int:
    """页码解析失败或为负数时按第 0 页处理"""
    try:
        value = int(page) if page is not None else 0
    except ValueError:
        return 0
    return max(value, 0)


def _parse_size(size: Optional[str]) -> Optional[int]:
    if size is None or size == "":
        return None
    try:
        return int(size)
    except ValueError:
        raise ValidationError("Invalid size", field="size")


# ===== 端点 =====

@router.post("", response_model=FileRecord, status_code=status.HTTP_201_CREATED)
def create_file(
    request: Optional[FileCreateRequest] = Body(None),
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """
    创建文件

    - name: 文件名
    - type: folder / file / image
    - parentId: 父文件夹 ID（可选，0 表示根目录）
    - isPublic: 是否公开（默认 false）
    - data: Base64 编码内容（file/image 必填）
    """
    request = request or FileCreateRequest()
    return services.files.create(
        user_id,
        name=request.name,
        file_type=request.type,
        parent_id=normalize_parent_id(request.parent_id),
        data=decode_payload(request.data),
        is_public=request.is_public,
    )


@router.get("", response_model=List[FileRecord])
def list_files(
    parent_id: Optional[str] = Query(None, alias="parentId"),
    page: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """
    列出当前用户的文件

    - parentId: 父文件夹 ID（默认根目录）
    - page: 页码，从 0 开始，每页 10 条
    """
    return services.files.list(
        user_id,
        parent_id=normalize_parent_id(parent_id),
        page=_parse_page(page),
    )


@router.get("/{file_id}", response_model=FileRecord)
def get_file(
    file_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """获取文件元数据（公开文件无需登录）"""
    return services.files.get(user_id, file_id)


@router.put("/{file_id}/publish", response_model=FileRecord)
def publish_file(
    file_id: str,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """公开文件"""
    return services.files.publish(user_id, file_id)


@router.put("/{file_id}/unpublish", response_model=FileRecord)
def unpublish_file(
    file_id: str,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """取消公开"""
    return services.files.unpublish(user_id, file_id)


@router.get("/{file_id}/data")
def get_file_data(
    file_id: str,
    size: Optional[str] = Query(None),
    user_id: Optional[str] = Depends(get_optional_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """
    下载文件内容

    - size: 缩略图宽度（500 / 250 / 100，仅图片）
    """
    payload = services.files.read_payload(user_id, file_id, size=_parse_size(size))
    return Response(content=payload.content, media_type=payload.mime_type)
