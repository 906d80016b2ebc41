"""
数据模型测试
"""

import pytest

from files_manager.models import (
    FileCreateRequest,
    FileRecord,
    FileType,
    normalize_parent_id,
)


def make_record(**overrides):
    data = {
        "id": "f1",
        "owner_id": "u1",
        "name": "a.txt",
        "type": FileType.FILE,
        "storage_ref": "blob-1",
    }
    data.update(overrides)
    return FileRecord(**data)


class TestFileType:
    """测试文件类型"""

    def test_closed_set(self):
        assert {t.value for t in FileType} == {"folder", "file", "image"}

    def test_has_payload(self):
        assert FileType.FOLDER.has_payload is False
        assert FileType.FILE.has_payload is True
        assert FileType.IMAGE.has_payload is True


class TestFileRecord:
    """测试文件记录序列化"""

    def test_client_shape(self):
        data = make_record().model_dump(by_alias=True, mode="json")
        assert data == {
            "id": "f1",
            "userId": "u1",
            "name": "a.txt",
            "type": "file",
            "isPublic": False,
            "parentId": 0,
        }

    def test_parent_id_serialized(self):
        data = make_record(parent_id="folder-1").model_dump(by_alias=True)
        assert data["parentId"] == "folder-1"

    def test_accepts_aliases(self):
        record = FileRecord(id="f1", userId="u1", name="a", type="folder", isPublic=True, parentId=0)
        assert record.owner_id == "u1"
        assert record.is_public is True
        assert record.parent_id is None

    def test_storage_ref_excluded(self):
        assert "storage_ref" not in make_record().model_dump()


class TestFileCreateRequest:
    """测试创建请求"""

    def test_defaults(self):
        request = FileCreateRequest()
        assert request.is_public is False
        assert request.parent_id is None

    def test_aliases(self):
        request = FileCreateRequest(name="a", type="file", parentId="p", isPublic=True, data="eA==")
        assert request.parent_id == "p"
        assert request.is_public is True


@pytest.mark.parametrize("value,expected", [
    (None, None),
    ("", None),
    ("0", None),
    (0, None),
    (" 0 ", None),
    ("abc", "abc"),
    (12, "12"),
])
def test_normalize_parent_id(value, expected):
    assert normalize_parent_id(value) == expected
