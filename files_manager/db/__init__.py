"""
持久化存储模块
"""

from .tables import Base, UserRow, FileRow, new_object_id
from .store import PersistentStore

__all__ = [
    "Base",
    "UserRow",
    "FileRow",
    "new_object_id",
    "PersistentStore",
]
