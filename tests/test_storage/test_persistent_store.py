"""
持久化存储测试
"""

import warnings
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from files_manager.db import PersistentStore
from files_manager.db.store import _engine_options
from files_manager.errors import ConflictError, ServiceUnavailableError
from files_manager.models import FileType


@pytest.fixture
def store():
    """内存 SQLite"""
    store = PersistentStore("sqlite://")
    store.create_all()
    yield store
    store.close()


class TestUsers:
    """测试用户表"""

    def test_insert_and_get(self, store):
        user = store.insert_user("a@b.c", "digest")

        assert len(user.id) == 32
        assert store.get_user(user.id) == user
        assert store.find_user_by_email("a@b.c") == user

    def test_find_by_credentials(self, store):
        user = store.insert_user("a@b.c", "digest")

        assert store.find_user_by_credentials("a@b.c", "digest") == user
        assert store.find_user_by_credentials("a@b.c", "other") is None
        assert store.find_user_by_credentials("x@b.c", "digest") is None

    def test_unique_email(self, store):
        store.insert_user("a@b.c", "digest")
        with pytest.raises(ConflictError):
            store.insert_user("a@b.c", "digest")
        assert store.count_users() == 1

    def test_missing(self, store):
        assert store.get_user("missing") is None
        assert store.find_user_by_email("missing") is None


class TestFiles:
    """测试文件表"""

    def test_insert_and_get(self, store):
        user = store.insert_user("a@b.c", "digest")
        record = store.insert_file(user.id, "a.txt", FileType.FILE, storage_ref="ref")

        fetched = store.get_file(record.id)
        assert fetched == record
        assert fetched.storage_ref == "ref"
        assert fetched.parent_id is None

    def test_list_keeps_insertion_order(self, store):
        user = store.insert_user("a@b.c", "digest")
        # 名称与 ID 的字典序都不能决定顺序
        ids = [store.insert_file(user.id, name, FileType.FOLDER).id for name in ("z", "a", "m")]

        assert [r.id for r in store.list_files(user.id)] == ids
        assert [r.id for r in store.list_files(user.id, offset=1, limit=1)] == ids[1:2]

    def test_set_visibility(self, store):
        user = store.insert_user("a@b.c", "digest")
        record = store.insert_file(user.id, "a", FileType.FOLDER)

        updated = store.set_file_visibility(record.id, True)

        assert updated.is_public is True
        assert store.get_file(record.id).is_public is True
        assert store.set_file_visibility("missing", True) is None

    def test_counts(self, store):
        user = store.insert_user("a@b.c", "digest")
        store.insert_file(user.id, "a", FileType.FOLDER)
        store.insert_file(user.id, "b", FileType.FOLDER)

        assert store.count_users() == 1
        assert store.count_files() == 2


class TestEngineOptions:
    """测试连接参数"""

    def test_server_database_gets_connect_timeout(self):
        options = _engine_options("postgresql://fm:secret@db:5432/files_manager", False, 5, connect_timeout=7)

        assert options["connect_args"] == {"connect_timeout": 7}
        assert options["pool_size"] == 5
        assert options["pool_pre_ping"] is True

    def test_sqlite_has_no_connect_timeout(self, tmp_path):
        options = _engine_options(f"sqlite:///{tmp_path / 'db.sqlite'}", False, 5, connect_timeout=7)
        assert options["connect_args"] == {"check_same_thread": False}

    def test_store_passes_connect_timeout(self):
        with patch("files_manager.db.store.create_engine") as create_engine:
            PersistentStore("postgresql://fm:secret@db/files_manager", connect_timeout=3)

        assert create_engine.call_args.kwargs["connect_args"] == {"connect_timeout": 3}


class TestTimestamps:
    """测试时间戳默认值"""

    def test_insert_does_not_use_utcnow(self, store):
        with warnings.catch_warnings():
            warnings.filterwarnings("error", message=".*utcnow.*", category=DeprecationWarning)
            user = store.insert_user("a@b.c", "digest")
            store.insert_file(user.id, "a", FileType.FOLDER)

        assert store.count_files() == 1


class TestAvailability:
    """测试后端故障"""

    def test_is_alive(self, store):
        assert store.is_alive() is True

    def test_creates_sqlite_parent_directory(self, tmp_path):
        store = PersistentStore(f"sqlite:///{tmp_path / 'nested' / 'db.sqlite'}")
        store.create_all()
        assert (tmp_path / "nested").is_dir()
        store.close()

    def test_operational_error_is_service_unavailable(self, store):
        error = OperationalError("SELECT 1", {}, Exception("database is locked"))
        with patch("sqlalchemy.orm.Session.scalar", side_effect=error):
            with pytest.raises(ServiceUnavailableError):
                store.find_user_by_email("a@b.c")

    def test_is_alive_false_on_error(self, store):
        error = OperationalError("SELECT 1", {}, Exception("unreachable"))
        with patch.object(store.engine, "connect", side_effect=error):
            assert store.is_alive() is False
