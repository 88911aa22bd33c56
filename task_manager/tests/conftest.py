"""测试公共夹具"""

import pytest
from pathlib import Path

from task_manager.context import Context

from .fakes import RecordingStore


@pytest.fixture
def tasks_file(tmp_path) -> Path:
    """临时任务文件路径（文件本身尚未创建）"""
    return tmp_path / "tasks.json"


@pytest.fixture
def ctx():
    """每个测试独立的上下文"""
    root = Context.background()
    yield root
    root.cancel()


@pytest.fixture
def cancelled_ctx():
    """已取消的上下文"""
    ctx = Context.background()
    ctx.cancel()
    return ctx


@pytest.fixture
def recording_store(tasks_file) -> RecordingStore:
    return RecordingStore(tasks_file)
