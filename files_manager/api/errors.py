"""
API 错误处理模块

将核心层异常映射为 {"error": message} 响应，并提供请求日志中间件。
响应体从不包含堆栈或内部标识。
"""

import logging
import time

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from files_manager.errors import FilesManagerError

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int) -> JSONResponse:
    """
    创建错误响应

    Args:
        message: 错误消息
        status_code: HTTP 状态码

    Returns:
        JSON 响应
    """
    return JSONResponse(status_code=status_code, content={"error": message})


async def files_manager_exception_handler(request: Request, exc: FilesManagerError) -> JSONResponse:
    """核心层异常处理器"""
    if exc.status_code >= 500:
        logger.error(f"服务异常: {request.method} {request.url.path} - {exc.code}: {exc.message}", exc_info=exc)
    else:
        logger.info(f"请求失败: {request.method} {request.url.path} - {exc.code}: {exc.message}")

    return error_response(exc.message, exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求参数校验失败统一返回 400"""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"Invalid {location}" if location else message

    logger.info(f"请求校验失败: {request.method} {request.url.path} - {errors}")
    return error_response(message, status.HTTP_400_BAD_REQUEST)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """路由不存在、方法不允许等框架异常"""
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(detail, exc.status_code)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """全局异常处理器"""
    logger.error(f"未处理的异常: {exc}", exc_info=True)
    return error_response("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


# ===== 请求日志中间件 =====

class LoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件

    记录所有 API 请求和响应，并添加 X-Process-Time 响应头。
    """

    def __init__(self, app, log_level: str = "INFO"):
        super().__init__(app)
        self.log_level = getattr(logging, log_level.upper())
        self.logger = logging.getLogger(__name__)

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        self.logger.log(
            self.log_level,
            f"请求: {request.method} {request.url.path} from {self._get_client_ip(request)}"
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            self.logger.error(
                f"请求异常: {request.method} {request.url.path} - {exc}",
                exc_info=True
            )
            raise

        process_time = (time.time() - start_time) * 1000

        self.logger.log(
            self.log_level,
            f"响应: {request.method} {request.url.path} "
            f"status={response.status_code} time={process_time:.2f}ms"
        )

        response.headers["X-Process-Time"] = f"{process_time:.2f}"
        return response

    def _get_client_ip(self, request: Request) -> str:
        """获取客户端 IP"""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"


__all__ = [
    "error_response",
    "files_manager_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
    "global_exception_handler",
    "LoggingMiddleware",
]
