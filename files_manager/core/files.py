"""
文件访问控制

所有文件操作的所有权/可见性规则：
- 私有记录只有所有者可读，公开记录任何人（包括未登录）可读
- 只有所有者可以修改可见性
- 列表只返回调用者自己的记录，按插入顺序 offset/limit 分页
- 创建成功后先持久化、再投递后台任务
"""

import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass
from typing import List, Optional, Sequence

from files_manager.db import PersistentStore
from files_manager.errors import (
    ForbiddenError,
    NoContentError,
    NotFoundError,
    ValidationError,
)
from files_manager.jobs import JobQueue, enqueue_quietly
from files_manager.models import FileRecord, FileType
from files_manager.storage import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
DEFAULT_THUMBNAIL_WIDTHS = (500, 250, 100)

# SQL OFFSET 为 64 位有符号整数
MAX_OFFSET = 2 ** 63 - 1


@dataclass
class Payload:
    """文件内容读取结果"""

    content: bytes
    mime_type: str
    name: str


def decode_payload(data: Optional[str]) -> Optional[bytes]:
    """
    解码 Base64 文件内容，忽略换行等空白（兼容按行折叠的编码输出）

    Raises:
        ValidationError: 内容不是合法的 Base64
    """
    if data is None:
        return None
    try:
        return base64.b64decode("".join(data.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Invalid data", field="data") from e


def guess_mime_type(name: str) -> str:
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or "application/octet-stream"


class FileAccessController:
    """
    文件记录的创建、读取、列表与可见性控制

    Args:
        store: 持久化存储
        blobs: 文件内容存储
        queue: 任务队列
        file_queue: 文件后处理队列名称
        page_size: 默认分页大小
        thumbnail_widths: 允许读取的缩略图宽度
    """

    def __init__(
        self,
        store: PersistentStore,
        blobs: BlobStore,
        queue: Optional[JobQueue] = None,
        file_queue: str = "fileQueue",
        page_size: int = DEFAULT_PAGE_SIZE,
        thumbnail_widths: Sequence[int] = DEFAULT_THUMBNAIL_WIDTHS,
    ):
        self._store = store
        self._blobs = blobs
        self._queue = queue
        self._file_queue = file_queue
        self.page_size = page_size
        self.thumbnail_widths = tuple(thumbnail_widths)

    # ===== 创建 =====

    def create(
        self,
        acting_user_id: str,
        name: Optional[str],
        file_type: Optional[str],
        parent_id: Optional[str] = None,
        data: Optional[bytes] = None,
        is_public: bool = False,
    ) -> FileRecord:
        """
        创建文件/文件夹/图片记录

        顺序固定：写入内容 -> 提交记录 -> 投递 {fileId, userId} 任务。

        Raises:
            ValidationError: 名称/类型/内容缺失，或父目录无效
        """
        if not name:
            raise ValidationError("Missing name", field="name")

        try:
            kind = FileType(file_type)
        except ValueError:
            raise ValidationError("Missing type", field="type")

        if kind.has_payload and not data:
            raise ValidationError("Missing data", field="data")

        if parent_id is not None:
            parent = self._store.get_file(parent_id)
            # 别人的文件夹按不存在处理
            if parent is None or parent.owner_id != acting_user_id:
                raise ValidationError("Parent not found", field="parentId")
            if parent.type is not FileType.FOLDER:
                raise ValidationError("Parent is not a folder", field="parentId")

        storage_ref = self._blobs.write(data) if kind.has_payload else None

        try:
            record = self._store.insert_file(
                owner_id=acting_user_id,
                name=name,
                file_type=kind,
                parent_id=parent_id,
                is_public=is_public,
                storage_ref=storage_ref,
            )
        except Exception:
            if storage_ref is not None:
                self._blobs.delete(storage_ref)
            raise

        logger.info(f"文件创建成功: {record.id} ({kind.value}) owner={acting_user_id}")

        enqueue_quietly(self._queue, self._file_queue, {"fileId": record.id, "userId": acting_user_id})
        return record

    # ===== 读取 =====

    def get(self, acting_user_id: Optional[str], file_id: str) -> FileRecord:
        """
        读取单条记录

        Raises:
            NotFoundError: 记录不存在
            ForbiddenError: 私有记录且调用者不是所有者（含未登录）
        """
        record = self._store.get_file(file_id)
        if record is None:
            raise NotFoundError("Not found", resource_id=file_id)
        self._check_readable(record, acting_user_id)
        return record

    def list(
        self,
        acting_user_id: str,
        parent_id: Optional[str] = None,
        page: int = 0,
        page_size: Optional[int] = None,
    ) -> List[FileRecord]:
        """
        列出调用者在某目录下的记录

        page 从 0 开始；超出范围返回空列表。
        """
        size = self.page_size if page_size is None else page_size
        if page < 0:
            raise ValidationError("Invalid page", field="page")
        if size < 1 or size > MAX_OFFSET:
            raise ValidationError("Invalid page size", field="pageSize")

        offset = page * size
        if offset > MAX_OFFSET:
            return []

        return self._store.list_files(
            owner_id=acting_user_id,
            parent_id=parent_id,
            offset=offset,
            limit=size,
        )

    def read_payload(
        self,
        acting_user_id: Optional[str],
        file_id: str,
        size: Optional[int] = None,
    ) -> Payload:
        """
        读取文件内容，size 指定时返回对应宽度的缩略图

        Raises:
            NotFoundError: 记录或内容不存在（缩略图尚未生成）
            ForbiddenError: 无权读取
            NoContentError: 文件夹没有内容
            ValidationError: 不支持的缩略图宽度
        """
        record = self.get(acting_user_id, file_id)

        if not record.type.has_payload or record.storage_ref is None:
            raise NoContentError()

        ref = record.storage_ref
        if size is not None:
            if size not in self.thumbnail_widths:
                raise ValidationError("Invalid size", field="size")
            ref = BlobStore.derivative_ref(ref, size)

        content = self._blobs.read(ref)
        if content is None:
            raise NotFoundError("Not found", resource_id=file_id)

        return Payload(content=content, mime_type=guess_mime_type(record.name), name=record.name)

    # ===== 可见性 =====

    def set_visibility(self, acting_user_id: str, file_id: str, is_public: bool) -> FileRecord:
        """
        发布/取消发布

        Raises:
            NotFoundError: 记录不存在
            ForbiddenError: 调用者不是所有者
        """
        record = self._store.get_file(file_id)
        if record is None:
            raise NotFoundError("Not found", resource_id=file_id)
        if record.owner_id != acting_user_id:
            raise ForbiddenError()

        updated = self._store.set_file_visibility(file_id, is_public)
        if updated is None:
            raise NotFoundError("Not found", resource_id=file_id)

        logger.info(f"文件 {file_id} 可见性更新: is_public={is_public}")
        return updated

    def publish(self, acting_user_id: str, file_id: str) -> FileRecord:
        return self.set_visibility(acting_user_id, file_id, True)

    def unpublish(self, acting_user_id: str, file_id: str) -> FileRecord:
        return self.set_visibility(acting_user_id, file_id, False)

    @staticmethod
    def _check_readable(record: FileRecord, acting_user_id: Optional[str]) -> None:
        if record.is_public:
            return
        if acting_user_id is None or acting_user_id != record.owner_id:
            raise ForbiddenError()


__all__ = [
    "FileAccessController",
    "Payload",
    "decode_payload",
    "guess_mime_type",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_THUMBNAIL_WIDTHS",
]
