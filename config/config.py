"""
配置管理系统

支持从 YAML 文件、环境变量加载配置
"""

import os
import yaml
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from dotenv import load_dotenv

# 加载 .env 文件
load_dotenv()


class DatabaseConfig(BaseModel):
    """持久化存储配置

    默认使用 SQLite（嵌入式数据库，无需外部服务器）
    任何 SQLAlchemy 支持的 URL 均可使用
    """

    url: str = Field(default="sqlite:///./data/files_manager.db", description="SQLAlchemy 数据库 URL")
    echo: bool = Field(default=False, description="是否输出 SQL 日志")
    pool_size: int = Field(default=10, description="连接池大小（非 SQLite）")
    connect_timeout: int = Field(default=5, description="连接超时时间（秒）")


class CacheConfig(BaseModel):
    """会话缓存配置"""

    backend: str = Field(default="memory", description="缓存后端 (memory, redis)")
    redis_url: str = Field(default="redis://127.0.0.1:6379/0", description="Redis 连接 URL")
    socket_timeout: float = Field(default=5.0, description="Redis 读写超时（秒）")
    max_size: int = Field(default=100000, description="内存后端最大条目数")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """验证缓存后端"""
        valid_backends = ["memory", "redis"]
        if v not in valid_backends:
            raise ValueError(f"Invalid cache backend: {v}. Must be one of {valid_backends}")
        return v


class QueueConfig(BaseModel):
    """后台任务队列配置"""

    backend: str = Field(default="memory", description="队列后端 (memory, redis)")
    redis_url: str = Field(default="redis://127.0.0.1:6379/0", description="Redis 连接 URL")
    key_prefix: str = Field(default="files_manager:queue", description="队列键前缀")
    file_queue: str = Field(default="fileQueue", description="文件后处理队列名称")
    user_queue: str = Field(default="userQueue", description="用户欢迎队列名称")
    poll_timeout: int = Field(default=5, description="Worker 阻塞出队超时（秒）")
    socket_connect_timeout: float = Field(default=5.0, gt=0, description="Redis 建立连接超时（秒）")
    socket_timeout: float = Field(default=10.0, gt=0, description="Redis 读写超时（秒），需大于 poll_timeout")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """验证队列后端"""
        valid_backends = ["memory", "redis"]
        if v not in valid_backends:
            raise ValueError(f"Invalid queue backend: {v}. Must be one of {valid_backends}")
        return v

    @model_validator(mode="after")
    def validate_socket_timeout(self) -> "QueueConfig":
        """读写超时必须覆盖 Worker 的阻塞出队等待"""
        if self.socket_timeout <= self.poll_timeout:
            raise ValueError(
                f"queue.socket_timeout ({self.socket_timeout}) must exceed queue.poll_timeout ({self.poll_timeout})"
            )
        return self


class StorageConfig(BaseModel):
    """文件内容存储配置"""

    folder_path: str = Field(default="/tmp/files_manager", description="文件内容存储目录")
    thumbnail_widths: List[int] = Field(
        default_factory=lambda: [500, 250, 100],
        description="图片缩略图宽度列表"
    )


class AuthConfig(BaseModel):
    """认证配置"""

    token_ttl_seconds: int = Field(default=86400, ge=1, description="会话令牌有效期（秒）")
    token_key_prefix: str = Field(default="auth_", description="会话令牌缓存键前缀")


class LoggingConfig(BaseModel):
    """日志配置"""

    level: str = Field(default="INFO", description="日志级别")
    file: Optional[str] = Field(default="./logs/files_manager.log", description="日志文件路径")
    max_bytes: int = Field(default=10485760, description="日志文件最大大小（10MB）")
    backup_count: int = Field(default=5, description="日志备份数量")


class APIConfig(BaseModel):
    """API 服务配置"""

    host: str = Field(default="0.0.0.0", description="API 服务主机")
    port: int = Field(default=5000, description="API 服务端口")
    workers: int = Field(default=1, description="工作进程数")
    reload: bool = Field(default=False, description="是否自动重载")
    page_size: int = Field(default=10, ge=1, description="文件列表分页大小")


class Config(BaseModel):
    """Files Manager 总配置"""

    # 环境配置
    environment: str = Field(default="development", description="运行环境 (development, production, test)")
    debug: bool = Field(default=False, description="调试模式")

    # 各模块配置
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: APIConfig = Field(default_factory=APIConfig)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """验证环境变量"""
        valid_envs = ["development", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v


class ConfigManager:
    """
    配置管理器

    支持从 YAML 文件加载配置，支持环境变量覆盖
    """

    ENV_PREFIX = "FM_"

    def __init__(self, config_path: Optional[str] = None):
        """
        初始化配置管理器

        Args:
            config_path: YAML 配置文件路径，默认为 config/settings.yaml
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Config] = None

    @staticmethod
    def _find_config_file() -> str:
        """
        查找配置文件

        按以下顺序查找：
        1. ./config/settings.yaml
        2. ./settings.yaml
        3. ~/.config/files_manager/settings.yaml
        """
        possible_paths = [
            "./config/settings.yaml",
            "./settings.yaml",
            os.path.expanduser("~/.config/files_manager/settings.yaml"),
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        # 如果都没找到，使用默认路径
        return "./config/settings.yaml"

    def load_yaml(self) -> Dict[str, Any]:
        """
        从 YAML 文件加载配置

        Returns:
            配置字典
        """
        if not os.path.exists(self.config_path):
            return {}

        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _override_from_env(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        从环境变量覆盖配置

        使用 __ 分隔层级，例如：
        FM_DATABASE__URL=postgresql://...
        FM_CACHE__BACKEND=redis

        Args:
            config_dict: 原始配置字典

        Returns:
            覆盖后的配置字典
        """
        result = config_dict.copy()

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(self.ENV_PREFIX):
                continue

            key = env_key[len(self.ENV_PREFIX):].replace("__", ".").lower()
            parts = key.split(".")

            current = result
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]
            current[parts[-1]] = self._parse_env_value(env_value)

        return result

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """
        解析环境变量值

        Args:
            value: 环境变量值

        Returns:
            解析后的值
        """
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def load(self) -> Config:
        """
        加载配置

        从 YAML 文件加载配置，并使用环境变量覆盖

        Returns:
            配置对象
        """
        if self._config is not None:
            return self._config

        yaml_config = self.load_yaml()
        merged_config = self._override_from_env(yaml_config)

        self._config = Config(**merged_config)
        return self._config

    def reload(self) -> Config:
        """重新加载配置"""
        self._config = None
        return self.load()

    def save(self, path: Optional[str] = None) -> None:
        """
        保存当前配置到 YAML 文件

        Args:
            path: 保存路径，默认为原配置文件路径
        """
        save_path = path or self.config_path

        directory = os.path.dirname(save_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        config_dict = self.load().model_dump(exclude_none=True)

        with open(save_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config_dict, f, allow_unicode=True, default_flow_style=False)


# 全局配置管理器实例
_config_manager: Optional[ConfigManager] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """
    获取全局配置对象

    Args:
        config_path: 可选的配置文件路径

    Returns:
        配置对象
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager(config_path)

    return _config_manager.load()


def get_config_manager() -> ConfigManager:
    """获取全局配置管理器"""
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager()

    return _config_manager


def reload_config() -> Config:
    """
    重新加载全局配置

    Returns:
        配置对象
    """
    global _config_manager

    if _config_manager is not None:
        return _config_manager.reload()

    return get_config()
