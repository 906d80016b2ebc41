"""
API 路由
"""

from . import files, health, users

__all__ = ["files", "health", "users"]
