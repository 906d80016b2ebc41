"""
文件内容存储模块
"""

from .blob_store import BlobStore

__all__ = ["BlobStore"]
