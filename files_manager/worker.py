"""
后台任务 Worker

消费两个队列：
- fileQueue: {fileId, userId}，为图片生成 500/250/100 像素宽的缩略图
- userQueue: {userId}，输出欢迎消息

Worker 与 API 使用同一份配置构建服务容器，通常以独立进程运行。
"""

import io
import logging
import threading
from typing import Optional, Sequence

from PIL import Image, UnidentifiedImageError

from files_manager.errors import (
    FilesManagerError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from files_manager.jobs import Job
from files_manager.models import FileType
from files_manager.services import ServiceContainer

logger = logging.getLogger(__name__)


def make_thumbnail(content: bytes, width: int) -> bytes:
    """
    按宽度等比缩放图片

    Raises:
        ValidationError: 内容不是可识别的图片
    """
    try:
        with Image.open(io.BytesIO(content)) as image:
            image_format = image.format or "PNG"
            height = max(1, round(image.height * width / image.width))
            resized = image.resize((width, height))
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError("Invalid image", field="data") from e

    if image_format == "JPEG" and resized.mode not in ("RGB", "L"):
        resized = resized.convert("RGB")

    buffer = io.BytesIO()
    resized.save(buffer, format=image_format)
    return buffer.getvalue()


class JobWorker:
    """
    队列消费者

    Args:
        services: 服务容器
        poll_timeout: 单次阻塞出队的等待秒数
    """

    def __init__(self, services: ServiceContainer, poll_timeout: Optional[float] = None):
        self.services = services
        self.poll_timeout = poll_timeout if poll_timeout is not None else services.config.queue.poll_timeout
        self.file_queue = services.config.queue.file_queue
        self.user_queue = services.config.queue.user_queue
        self.thumbnail_widths: Sequence[int] = tuple(services.config.storage.thumbnail_widths)
        self._stop_event = threading.Event()

    # ===== 任务处理 =====

    def process_file_job(self, payload: dict) -> list:
        """
        处理文件任务

        Returns:
            生成的缩略图 blob 名称列表（非图片返回空列表）

        Raises:
            ValidationError: 缺少 fileId 或 userId
            NotFoundError: 文件不存在或不属于该用户
        """
        file_id = payload.get("fileId")
        user_id = payload.get("userId")
        if not file_id:
            raise ValidationError("Missing fileId", field="fileId")
        if not user_id:
            raise ValidationError("Missing userId", field="userId")

        record = self.services.store.get_file(file_id)
        if record is None or record.owner_id != user_id:
            raise NotFoundError("File not found", resource_id=file_id)

        if record.type is not FileType.IMAGE or record.storage_ref is None:
            return []

        content = self.services.blobs.read(record.storage_ref)
        if content is None:
            raise NotFoundError("File not found", resource_id=file_id)

        refs = []
        for width in self.thumbnail_widths:
            refs.append(
                self.services.blobs.write_derivative(record.storage_ref, width, make_thumbnail(content, width))
            )

        logger.info(f"缩略图生成完成: {file_id} widths={list(self.thumbnail_widths)}")
        return refs

    def process_user_job(self, payload: dict) -> str:
        """
        处理用户任务，返回欢迎消息

        Raises:
            ValidationError: 缺少 userId
            NotFoundError: 用户不存在
        """
        user_id = payload.get("userId")
        if not user_id:
            raise ValidationError("Missing userId", field="userId")

        user = self.services.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found", resource_id=user_id)

        message = f"Welcome {user.email}!"
        logger.info(message)
        return message

    # ===== 消费循环 =====

    def handle(self, job: Job) -> bool:
        """
        执行单个任务，任务自身的错误只记录不抛出

        Returns:
            是否处理成功
        """
        handler = self.process_file_job if job.queue == self.file_queue else self.process_user_job
        try:
            handler(job.payload)
            return True
        except FilesManagerError as e:
            logger.error(f"任务 {job.job_id} ({job.queue}) 失败: {e.message}")
            return False

    def run_once(self, timeout: float = 0) -> int:
        """
        依次尝试从两个队列各取一个任务

        Returns:
            本轮处理的任务数
        """
        processed = 0
        for queue_name in (self.file_queue, self.user_queue):
            job = self.services.queue.dequeue(queue_name, timeout=timeout)
            if job is None:
                continue
            self.handle(job)
            processed += 1
        return processed

    def run(self) -> None:
        """阻塞运行，直到调用 stop()"""
        logger.info(f"Worker 启动: queues={self.file_queue},{self.user_queue}")
        while not self._stop_event.is_set():
            try:
                # 队列都为空时每个队列阻塞 poll_timeout 的一半
                self.run_once(timeout=self.poll_timeout / 2)
            except ServiceUnavailableError as e:
                logger.warning(f"队列不可用，{self.poll_timeout} 秒后重试: {e.message}")
                self._stop_event.wait(self.poll_timeout)
        logger.info("Worker 已停止")

    def stop(self) -> None:
        self._stop_event.set()


__all__ = ["JobWorker", "make_thumbnail"]
