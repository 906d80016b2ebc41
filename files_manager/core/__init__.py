"""
核心业务模块

会话、凭据、用户目录与文件访问控制
"""

from .credentials import CredentialManager
from .sessions import SessionManager, generate_token
from .users import UserDirectory
from .files import FileAccessController, Payload, decode_payload

__all__ = [
    "CredentialManager",
    "SessionManager",
    "generate_token",
    "UserDirectory",
    "FileAccessController",
    "Payload",
    "decode_payload",
]
