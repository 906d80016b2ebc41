"""
持久化存储

基于 SQLAlchemy 的用户与文件元数据存储。
所有写操作都是单记录原子更新；连接失败统一转换为 ServiceUnavailableError。
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from sqlalchemy import create_engine, func, select, text, update
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from files_manager.db.tables import Base, FileRow, UserRow
from files_manager.errors import ConflictError, ServiceUnavailableError
from files_manager.models import FileRecord, FileType, User

logger = logging.getLogger(__name__)


def _engine_options(url: str, echo: bool, pool_size: int, connect_timeout: int = 5) -> dict:
    """根据数据库类型构建 create_engine 参数"""
    parsed = make_url(url)
    options = {"echo": echo}

    if parsed.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            # 内存数据库必须共享同一个连接
            options["poolclass"] = StaticPool
        else:
            Path(parsed.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    else:
        options["pool_size"] = pool_size
        options["pool_pre_ping"] = True
        options["connect_args"] = {"connect_timeout": connect_timeout}

    return options


def _to_user(row: UserRow) -> User:
    return User(id=row.id, email=row.email)


def _to_record(row: FileRow) -> FileRecord:
    return FileRecord(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        type=FileType(row.type),
        is_public=row.is_public,
        parent_id=row.parent_id,
        storage_ref=row.storage_ref,
    )


class PersistentStore:
    """
    用户与文件元数据存储

    Args:
        url: SQLAlchemy 数据库 URL
        echo: 是否输出 SQL
        pool_size: 连接池大小（非 SQLite）
        connect_timeout: 建立连接的超时秒数（非 SQLite）
    """

    def __init__(self, url: str, echo: bool = False, pool_size: int = 10, connect_timeout: int = 5):
        self.url = url
        self.engine = create_engine(url, **_engine_options(url, echo, pool_size, connect_timeout))
        self._session_factory = sessionmaker(self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        """创建表结构（幂等）"""
        try:
            Base.metadata.create_all(self.engine)
        except OperationalError as e:
            raise ServiceUnavailableError("Database unavailable", backend="database") from e

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except OperationalError as e:
            session.rollback()
            logger.error(f"数据库操作失败: {e}")
            raise ServiceUnavailableError("Database unavailable", backend="database") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ===== 用户 =====

    def find_user_by_email(self, email: str) -> Optional[User]:
        with self._session() as session:
            row = session.scalar(select(UserRow).where(UserRow.email == email))
            return _to_user(row) if row else None

    def find_user_by_credentials(self, email: str, password_hash: str) -> Optional[User]:
        """按 (email, 密码摘要) 精确匹配查找用户"""
        with self._session() as session:
            row = session.scalar(
                select(UserRow).where(
                    UserRow.email == email,
                    UserRow.password_hash == password_hash,
                )
            )
            return _to_user(row) if row else None

    def get_user(self, user_id: str) -> Optional[User]:
        with self._session() as session:
            row = session.get(UserRow, user_id)
            return _to_user(row) if row else None

    def insert_user(self, email: str, password_hash: str) -> User:
        """
        插入用户

        Raises:
            ConflictError: 邮箱已存在（唯一约束）
        """
        row = UserRow(email=email, password_hash=password_hash)
        try:
            with self._session() as session:
                session.add(row)
                session.flush()
                return _to_user(row)
        except IntegrityError as e:
            raise ConflictError() from e

    def count_users(self) -> int:
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(UserRow)) or 0

    # ===== 文件 =====

    def insert_file(
        self,
        owner_id: str,
        name: str,
        file_type: FileType,
        parent_id: Optional[str] = None,
        is_public: bool = False,
        storage_ref: Optional[str] = None,
    ) -> FileRecord:
        """插入文件记录，返回时事务已提交"""
        row = FileRow(
            owner_id=owner_id,
            name=name,
            type=file_type.value,
            parent_id=parent_id,
            is_public=is_public,
            storage_ref=storage_ref,
        )
        with self._session() as session:
            session.add(row)
            session.flush()
            record = _to_record(row)
        return record

    def get_file(self, file_id: str) -> Optional[FileRecord]:
        with self._session() as session:
            row = session.scalar(select(FileRow).where(FileRow.id == file_id))
            return _to_record(row) if row else None

    def list_files(
        self,
        owner_id: str,
        parent_id: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> List[FileRecord]:
        """按插入顺序分页列出某用户在指定目录下的记录"""
        parent_clause = FileRow.parent_id.is_(None) if parent_id is None else FileRow.parent_id == parent_id
        stmt = (
            select(FileRow)
            .where(FileRow.owner_id == owner_id, parent_clause)
            .order_by(FileRow.seq)
            .offset(offset)
            .limit(limit)
        )
        with self._session() as session:
            return [_to_record(row) for row in session.scalars(stmt)]

    def set_file_visibility(self, file_id: str, is_public: bool) -> Optional[FileRecord]:
        """原子更新 is_public，记录不存在时返回 None"""
        with self._session() as session:
            result = session.execute(
                update(FileRow).where(FileRow.id == file_id).values(is_public=is_public)
            )
            if result.rowcount == 0:
                return None
            row = session.scalar(select(FileRow).where(FileRow.id == file_id))
            return _to_record(row)

    def count_files(self) -> int:
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(FileRow)) or 0

    # ===== 运维 =====

    def is_alive(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"数据库不可用: {e}")
            return False

    def close(self) -> None:
        self.engine.dispose()


__all__ = ["PersistentStore"]
