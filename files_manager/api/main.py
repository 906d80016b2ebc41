"""
Files Manager FastAPI 服务

提供用户注册、会话认证、文件管理等 REST 接口。
服务容器在进程启动时构建一次并挂载到 app.state，路由通过依赖注入获取。
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config, get_config
from files_manager import __version__
from files_manager.api.auth import auth_router
from files_manager.api.errors import (
    LoggingMiddleware,
    files_manager_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from files_manager.api.logging_config import setup_logging
from files_manager.api.routes import files, health, users
from files_manager.errors import FilesManagerError
from files_manager.services import ServiceContainer, build_services

logger = logging.getLogger(__name__)


def create_app(
    services: Optional[ServiceContainer] = None,
    config: Optional[Config] = None,
) -> FastAPI:
    """
    创建 FastAPI 应用

    Args:
        services: 预先构建的服务容器；为 None 时在启动阶段按配置构建
        config: 配置，默认加载全局配置

    Returns:
        FastAPI 应用
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        owns_services = getattr(app.state, "services", None) is None

        if owns_services:
            app_config = config or get_config()
            setup_logging(
                log_level=app_config.logging.level,
                log_file=app_config.logging.file,
                max_bytes=app_config.logging.max_bytes,
                backup_count=app_config.logging.backup_count,
            )
            logger.info("Files Manager API 服务启动中...")
            app.state.services = build_services(app_config)

        logger.info("Files Manager API 服务启动完成")

        try:
            yield
        finally:
            if owns_services:
                logger.info("Files Manager API 服务关闭中...")
                app.state.services.close()
                app.state.services = None

    app = FastAPI(
        title="Files Manager API",
        description="多用户文件托管服务 - REST API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    # 日志中间件
    app.add_middleware(LoggingMiddleware, log_level="INFO")

    # ===== 异常处理 =====
    app.add_exception_handler(FilesManagerError, files_manager_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # ===== 注册路由 =====
    app.include_router(health.router, tags=["健康检查"])
    app.include_router(auth_router)
    app.include_router(users.router, prefix="/users", tags=["用户"])
    app.include_router(files.router, prefix="/files", tags=["文件管理"])

    return app


app = create_app()

__all__ = ["app", "create_app"]
