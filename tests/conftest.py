"""
Pytest 配置文件

设置测试环境，提供基于临时 SQLite、内存缓存与内存队列的服务容器
"""

import base64
import sys
from pathlib import Path

import pytest

# 添加项目根目录到 Python 路径
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from fastapi.testclient import TestClient  # noqa: E402

from config import Config  # noqa: E402
from files_manager.api.main import create_app  # noqa: E402
from files_manager.cache import MemoryCache  # noqa: E402
from files_manager.jobs import MemoryJobQueue  # noqa: E402
from files_manager.services import build_services  # noqa: E402


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_config(tmp_path):
    """指向临时目录的测试配置"""
    return Config(
        environment="test",
        database={"url": f"sqlite:///{tmp_path / 'files_manager.db'}"},
        storage={"folder_path": str(tmp_path / "blobs")},
        logging={"file": None},
    )


@pytest.fixture
def cache(clock):
    return MemoryCache(clock=clock)


@pytest.fixture
def queue():
    return MemoryJobQueue()


@pytest.fixture
def services(test_config, cache, queue):
    """完整的服务容器"""
    container = build_services(test_config, cache=cache, queue=queue)
    yield container
    container.close()


@pytest.fixture
def client(services):
    """创建测试客户端"""
    with TestClient(create_app(services)) as test_client:
        yield test_client


def basic_auth(email: str, password: str) -> dict:
    """构建 Basic 认证头"""
    raw = base64.b64encode(f"{email}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {raw}"}


def b64(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


@pytest.fixture
def registered_user(services):
    """已注册用户 (User, password)"""
    user = services.users.register("bob@dylan.com", "toto1234!")
    return user, "toto1234!"


@pytest.fixture
def auth_headers(client, registered_user):
    """已登录用户的 X-Token 头"""
    user, password = registered_user
    response = client.get("/connect", headers=basic_auth(user.email, password))
    return {"X-Token": response.json()["token"]}
