"""
文件访问控制测试

所有权、可见性、分页与创建后投递任务
"""

import base64
from unittest.mock import MagicMock, patch

import pytest

from files_manager.core import FileAccessController, decode_payload
from files_manager.errors import (
    ForbiddenError,
    NoContentError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from files_manager.models import FileType


@pytest.fixture
def owner(services):
    return services.users.register("owner@example.com", "pw")


@pytest.fixture
def stranger(services):
    return services.users.register("stranger@example.com", "pw")


@pytest.fixture
def files(services):
    return services.files


class TestCreate:
    """测试创建"""

    def test_create_folder(self, files, owner):
        record = files.create(owner.id, "docs", "folder")

        assert record.type is FileType.FOLDER
        assert record.owner_id == owner.id
        assert record.parent_id is None
        assert record.is_public is False
        assert record.storage_ref is None

    def test_create_file_writes_blob(self, files, services, owner):
        record = files.create(owner.id, "hello.txt", "file", data=b"Hello Webstack!\n")

        assert record.storage_ref is not None
        assert services.blobs.read(record.storage_ref) == b"Hello Webstack!\n"

    def test_create_in_folder(self, files, owner):
        folder = files.create(owner.id, "images", "folder")
        image = files.create(owner.id, "a.png", "image", parent_id=folder.id, data=b"png")

        assert image.parent_id == folder.id

    def test_create_public(self, files, owner):
        record = files.create(owner.id, "docs", "folder", is_public=True)
        assert record.is_public is True

    @pytest.mark.parametrize("name,file_type,data,message", [
        (None, "file", b"x", "Missing name"),
        ("", "file", b"x", "Missing name"),
        ("a.txt", None, b"x", "Missing type"),
        ("a.txt", "document", b"x", "Missing type"),
        ("a.txt", "file", None, "Missing data"),
        ("a.txt", "file", b"", "Missing data"),
        ("a.png", "image", None, "Missing data"),
    ])
    def test_validation(self, files, owner, name, file_type, data, message):
        with pytest.raises(ValidationError) as exc_info:
            files.create(owner.id, name, file_type, data=data)
        assert exc_info.value.message == message

    def test_folder_does_not_need_data(self, files, owner):
        assert files.create(owner.id, "docs", "folder").type is FileType.FOLDER

    def test_missing_name_checked_first(self, files, owner):
        with pytest.raises(ValidationError) as exc_info:
            files.create(owner.id, None, None)
        assert exc_info.value.message == "Missing name"

    def test_parent_not_found(self, files, owner):
        with pytest.raises(ValidationError) as exc_info:
            files.create(owner.id, "a.txt", "file", parent_id="missing", data=b"x")
        assert exc_info.value.message == "Parent not found"

    def test_parent_is_not_a_folder(self, files, owner):
        parent = files.create(owner.id, "a.txt", "file", data=b"x")
        with pytest.raises(ValidationError) as exc_info:
            files.create(owner.id, "b.txt", "file", parent_id=parent.id, data=b"x")
        assert exc_info.value.message == "Parent is not a folder"

    def test_parent_owned_by_someone_else(self, files, owner, stranger):
        folder = files.create(owner.id, "docs", "folder", is_public=True)
        with pytest.raises(ValidationError) as exc_info:
            files.create(stranger.id, "a.txt", "file", parent_id=folder.id, data=b"x")
        assert exc_info.value.message == "Parent not found"

    def test_failed_validation_writes_nothing(self, files, services, owner):
        with pytest.raises(ValidationError):
            files.create(owner.id, "a.txt", "file", parent_id="missing", data=b"x")
        assert services.store.count_files() == 0
        assert list(services.blobs.storage_dir.iterdir()) == []


class TestCreateEnqueue:
    """测试创建后的任务投递"""

    def test_enqueue_after_commit(self, files, services, queue, owner):
        """任务出现时记录已经可以查询到"""
        record = files.create(owner.id, "a.png", "image", data=b"png")

        job = queue.dequeue("fileQueue")
        assert job.payload == {"fileId": record.id, "userId": owner.id}
        assert services.store.get_file(job.payload["fileId"]) is not None

    def test_enqueue_observes_committed_record(self, services, owner):
        seen = []
        spy = MagicMock()
        spy.enqueue.side_effect = lambda name, payload: seen.append(
            services.store.get_file(payload["fileId"])
        )
        controller = FileAccessController(services.store, services.blobs, queue=spy)

        record = controller.create(owner.id, "a.txt", "file", data=b"x")

        assert seen == [record]

    def test_one_job_per_record(self, files, queue, owner):
        files.create(owner.id, "docs", "folder")
        files.create(owner.id, "a.txt", "file", data=b"x")
        assert queue.size("fileQueue") == 2

    def test_queue_failure_is_not_fatal(self, services, owner):
        broken = MagicMock()
        broken.enqueue.side_effect = ServiceUnavailableError("Queue unavailable")
        controller = FileAccessController(services.store, services.blobs, queue=broken)

        record = controller.create(owner.id, "a.txt", "file", data=b"x")

        assert services.store.get_file(record.id) == record

    def test_insert_failure_removes_blob(self, services, owner):
        store = MagicMock(wraps=services.store)
        store.insert_file.side_effect = ServiceUnavailableError("Database unavailable")
        controller = FileAccessController(store, services.blobs)

        with pytest.raises(ServiceUnavailableError):
            controller.create(owner.id, "a.txt", "file", data=b"x")

        assert list(services.blobs.storage_dir.iterdir()) == []


class TestVisibility:
    """测试读取可见性"""

    def test_owner_reads_private(self, files, owner):
        record = files.create(owner.id, "docs", "folder")
        assert files.get(owner.id, record.id) == record

    def test_stranger_cannot_read_private(self, files, owner, stranger):
        record = files.create(owner.id, "docs", "folder")
        with pytest.raises(ForbiddenError):
            files.get(stranger.id, record.id)

    def test_anonymous_cannot_read_private(self, files, owner):
        record = files.create(owner.id, "docs", "folder")
        with pytest.raises(ForbiddenError):
            files.get(None, record.id)

    def test_anyone_reads_public(self, files, owner, stranger):
        record = files.create(owner.id, "docs", "folder", is_public=True)
        assert files.get(stranger.id, record.id).id == record.id
        assert files.get(None, record.id).id == record.id

    def test_not_found(self, files, owner):
        with pytest.raises(NotFoundError):
            files.get(owner.id, "missing")


class TestSetVisibility:
    """测试发布与取消发布"""

    def test_publish_and_unpublish(self, files, owner, stranger):
        record = files.create(owner.id, "a.txt", "file", data=b"x")

        published = files.publish(owner.id, record.id)
        assert published.is_public is True
        assert files.get(stranger.id, record.id).is_public is True

        unpublished = files.unpublish(owner.id, record.id)
        assert unpublished.is_public is False
        with pytest.raises(ForbiddenError):
            files.get(stranger.id, record.id)

    def test_publish_is_idempotent(self, files, owner):
        record = files.create(owner.id, "a.txt", "file", data=b"x")
        files.publish(owner.id, record.id)
        assert files.publish(owner.id, record.id).is_public is True

    def test_only_owner_can_change(self, files, owner, stranger):
        record = files.create(owner.id, "a.txt", "file", data=b"x", is_public=True)
        with pytest.raises(ForbiddenError):
            files.unpublish(stranger.id, record.id)
        assert files.get(owner.id, record.id).is_public is True

    def test_not_found(self, files, owner):
        with pytest.raises(NotFoundError):
            files.set_visibility(owner.id, "missing", True)


class TestList:
    """测试分页列表"""

    def test_pages_of_ten(self, files, owner):
        for i in range(15):
            files.create(owner.id, f"f{i}.txt", "file", data=b"x")

        first = files.list(owner.id, page=0)
        second = files.list(owner.id, page=1)

        assert [r.name for r in first] == [f"f{i}.txt" for i in range(10)]
        assert [r.name for r in second] == [f"f{i}.txt" for i in range(10, 15)]
        assert files.list(owner.id, page=2) == []

    def test_pages_cover_all_records_once(self, files, owner):
        created = [files.create(owner.id, f"f{i}", "folder").id for i in range(23)]

        seen = []
        page = 0
        while True:
            batch = files.list(owner.id, page=page, page_size=7)
            if not batch:
                break
            seen.extend(r.id for r in batch)
            page += 1

        assert seen == created

    def test_only_own_records(self, files, owner, stranger):
        files.create(owner.id, "mine", "folder", is_public=True)
        files.create(stranger.id, "theirs", "folder", is_public=True)

        assert [r.name for r in files.list(owner.id)] == ["mine"]

    def test_filtered_by_parent(self, files, owner):
        folder = files.create(owner.id, "docs", "folder")
        files.create(owner.id, "root.txt", "file", data=b"x")
        files.create(owner.id, "inner.txt", "file", parent_id=folder.id, data=b"x")

        assert [r.name for r in files.list(owner.id)] == ["docs", "root.txt"]
        assert [r.name for r in files.list(owner.id, parent_id=folder.id)] == ["inner.txt"]

    def test_unknown_parent_is_empty(self, files, owner):
        files.create(owner.id, "docs", "folder")
        assert files.list(owner.id, parent_id="missing") == []

    def test_negative_page(self, files, owner):
        with pytest.raises(ValidationError):
            files.list(owner.id, page=-1)

    def test_zero_page_size(self, files, owner):
        with pytest.raises(ValidationError):
            files.list(owner.id, page=0, page_size=0)

    def test_huge_page_is_empty(self, files, services, owner):
        """偏移量超出数据库整数范围时直接返回空列表"""
        files.create(owner.id, "docs", "folder")

        with patch.object(services.store, "list_files", wraps=services.store.list_files) as list_files:
            assert files.list(owner.id, page=10 ** 18) == []
            list_files.assert_not_called()


class TestReadPayload:
    """测试内容读取"""

    def test_read_own_file(self, files, owner):
        record = files.create(owner.id, "hello.txt", "file", data=b"Hello Webstack!\n")

        payload = files.read_payload(owner.id, record.id)

        assert payload.content == b"Hello Webstack!\n"
        assert payload.mime_type == "text/plain"
        assert payload.name == "hello.txt"

    def test_unknown_extension_is_octet_stream(self, files, owner):
        record = files.create(owner.id, "blob", "file", data=b"x")
        assert files.read_payload(owner.id, record.id).mime_type == "application/octet-stream"

    def test_folder_has_no_content(self, files, owner):
        record = files.create(owner.id, "docs", "folder")
        with pytest.raises(NoContentError):
            files.read_payload(owner.id, record.id)

    def test_private_for_stranger(self, files, owner, stranger):
        record = files.create(owner.id, "a.txt", "file", data=b"x")
        with pytest.raises(ForbiddenError):
            files.read_payload(stranger.id, record.id)

    def test_public_for_anonymous(self, files, owner):
        record = files.create(owner.id, "a.txt", "file", data=b"x", is_public=True)
        assert files.read_payload(None, record.id).content == b"x"

    def test_thumbnail_not_generated_yet(self, files, owner):
        record = files.create(owner.id, "a.png", "image", data=b"png")
        with pytest.raises(NotFoundError):
            files.read_payload(owner.id, record.id, size=500)

    def test_thumbnail(self, files, services, owner):
        record = files.create(owner.id, "a.png", "image", data=b"png")
        services.blobs.write_derivative(record.storage_ref, 250, b"thumb")

        assert files.read_payload(owner.id, record.id, size=250).content == b"thumb"

    def test_unsupported_size(self, files, owner):
        record = files.create(owner.id, "a.png", "image", data=b"png")
        with pytest.raises(ValidationError):
            files.read_payload(owner.id, record.id, size=42)

    def test_missing_blob(self, files, services, owner):
        record = files.create(owner.id, "a.txt", "file", data=b"x")
        services.blobs.delete(record.storage_ref)
        with pytest.raises(NotFoundError):
            files.read_payload(owner.id, record.id)


class TestDecodePayload:
    """测试 Base64 解码"""

    def test_decode(self):
        assert decode_payload("SGVsbG8=") == b"Hello"

    def test_none(self):
        assert decode_payload(None) is None

    def test_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            decode_payload("not base64!")
        assert exc_info.value.message == "Invalid data"

    def test_wrapped_lines(self):
        """按 76 列折行的编码输出"""
        encoded = base64.encodebytes(b"x" * 200).decode("ascii")
        assert "\n" in encoded
        assert decode_payload(encoded) == b"x" * 200

    def test_whitespace_only_is_empty(self):
        assert decode_payload(" \n ") == b""
