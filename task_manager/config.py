"""服务配置

从环境变量（以及 .env 文件）读取，变量名统一使用 TASK_MANAGER_ 前缀。
"""
import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "TASK_MANAGER_"

load_dotenv()


class Settings(BaseModel):
    """服务配置"""
    host: str = Field(default="0.0.0.0", description="监听地址")
    port: int = Field(default=8080, gt=0, lt=65536, description="监听端口")
    tasks_file: str = Field(default="tasks.json", description="任务文件路径")
    request_timeout: float = Field(default=2.0, gt=0, description="单个请求的超时时间（秒）")
    init_timeout: float = Field(default=5.0, gt=0, description="启动时加载任务的超时时间（秒）")
    log_level: str = Field(default="INFO", description="日志级别")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="允许的跨域来源")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


def get_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    从环境变量构建配置

    Args:
        environ: 环境变量映射，默认 os.environ

    Returns:
        Settings 实例
    """
    if environ is None:
        environ = os.environ

    values = {}
    for name in Settings.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in environ:
            values[name] = environ[key]
    return Settings(**values)


settings = get_settings()
