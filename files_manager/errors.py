"""
错误定义模块

核心层抛出的结构化异常，HTTP 层原样映射为状态码和 {"error": message} 响应。
"""

from typing import Optional, Dict, Any

from fastapi import status


# ===== 错误代码定义 =====

class ErrorCode:
    """标准错误代码"""

    # 认证/授权错误
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # 客户端错误
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    NO_CONTENT = "NO_CONTENT"

    # 服务端错误
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


# ===== 自定义异常 =====

class FilesManagerError(Exception):
    """
    异常基类

    用于抛出带有结构化错误信息的异常。
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(FilesManagerError):
    """输入缺失或格式错误"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"field": field} if field else None
        )


class ConflictError(FilesManagerError):
    """唯一键冲突"""

    def __init__(self, message: str = "Already exist"):
        super().__init__(
            message=message,
            code=ErrorCode.CONFLICT,
            status_code=status.HTTP_400_BAD_REQUEST
        )


class AuthFailure(FilesManagerError):
    """
    认证失败

    凭据错误、令牌缺失/无效/过期都使用同一个异常，调用方无法区分具体原因。
    """

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            code=ErrorCode.UNAUTHORIZED,
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class ForbiddenError(FilesManagerError):
    """已认证但无权访问该资源（映射为 401）"""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            code=ErrorCode.FORBIDDEN,
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class NotFoundError(FilesManagerError):
    """资源未找到"""

    def __init__(self, message: str = "Not found", resource_id: Optional[str] = None):
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_id": resource_id} if resource_id else None
        )


class NoContentError(FilesManagerError):
    """记录类型没有内容（文件夹）"""

    def __init__(self, message: str = "A folder doesn't have content"):
        super().__init__(
            message=message,
            code=ErrorCode.NO_CONTENT,
            status_code=status.HTTP_400_BAD_REQUEST
        )


class ServiceUnavailableError(FilesManagerError):
    """后端存储不可达或超时，不能与认证失败混淆"""

    def __init__(self, message: str = "Service unavailable", backend: Optional[str] = None):
        super().__init__(
            message=message,
            code=ErrorCode.SERVICE_UNAVAILABLE,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"backend": backend} if backend else None
        )


__all__ = [
    "ErrorCode",
    "FilesManagerError",
    "ValidationError",
    "ConflictError",
    "AuthFailure",
    "ForbiddenError",
    "NotFoundError",
    "NoContentError",
    "ServiceUnavailableError",
]
