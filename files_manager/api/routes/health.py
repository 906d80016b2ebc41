"""
健康检查与统计路由
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from files_manager.api.auth import get_services
from files_manager.services import ServiceContainer

router = APIRouter()


class StatusResponse(BaseModel):
    """后端连通性"""
    redis: bool = Field(description="会话缓存是否可用")
    db: bool = Field(description="持久化存储是否可用")


class StatsResponse(BaseModel):
    """记录数量统计"""
    users: int = Field(description="用户数")
    files: int = Field(description="文件记录数")


@router.get("/status", response_model=StatusResponse)
def get_status(services: ServiceContainer = Depends(get_services)):
    """
    健康检查接口

    返回会话缓存与数据库的连通状态
    """
    return StatusResponse(redis=services.cache.is_alive(), db=services.store.is_alive())


@router.get("/stats", response_model=StatsResponse)
def get_stats(services: ServiceContainer = Depends(get_services)):
    """返回用户与文件数量"""
    return StatsResponse(users=services.store.count_users(), files=services.store.count_files())
