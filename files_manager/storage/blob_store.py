"""
文件内容存储

将文件二进制内容写入本地目录，元数据中只保存不透明的 blob 名称（storage_ref）。
缩略图等派生文件与原文件同目录，命名为 <ref>_<width>。
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

from files_manager.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class BlobStore:
    """
    本地磁盘内容存储

    特性:
    - 随机 UUID 命名，不暴露原始文件名
    - 路径沙箱校验，禁止目录穿越
    """

    def __init__(self, storage_dir: Path):
        """
        初始化存储

        Args:
            storage_dir: 存储目录路径
        """
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def write(self, content: bytes) -> str:
        """
        存储内容

        Args:
            content: 文件二进制内容

        Returns:
            storage_ref: blob 名称

        Raises:
            ServiceUnavailableError: 写入失败
        """
        ref = str(uuid.uuid4())
        self._write_file(self.get_path(ref), content)
        return ref

    def read(self, ref: str) -> Optional[bytes]:
        """读取内容，不存在返回 None"""
        file_path = self.get_path(ref)
        if not file_path.exists():
            return None
        with open(file_path, "rb") as f:
            return f.read()

    def exists(self, ref: str) -> bool:
        return self.get_path(ref).exists()

    def delete(self, ref: str) -> bool:
        file_path = self.get_path(ref)
        if file_path.exists():
            file_path.unlink()
            return True
        return False

    @staticmethod
    def derivative_ref(ref: str, width: int) -> str:
        """派生文件（缩略图）的 blob 名称"""
        return f"{ref}_{width}"

    def write_derivative(self, ref: str, width: int, content: bytes) -> str:
        derived = self.derivative_ref(ref, width)
        self._write_file(self.get_path(derived), content)
        return derived

    def get_path(self, ref: str) -> Path:
        """
        获取 blob 的物理路径

        Raises:
            ValueError: ref 格式无效或越出存储目录
        """
        if not self._validate_ref(ref):
            raise ValueError(f"Invalid storage ref: {ref}")

        resolved = (self.storage_dir / ref).resolve()
        if resolved.parent != self.storage_dir.resolve():
            raise ValueError("Security violation: path outside sandbox")
        return resolved

    @staticmethod
    def _validate_ref(ref: str) -> bool:
        # 禁止空字符串、路径分隔符和路径遍历
        if not ref:
            return False
        if "/" in ref or "\\" in ref:
            return False
        if ".." in ref:
            return False
        return True

    def _write_file(self, file_path: Path, content: bytes) -> None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"写入文件失败 {file_path}: {e}")
            raise ServiceUnavailableError("Storage unavailable", backend="disk") from e


__all__ = ["BlobStore"]
