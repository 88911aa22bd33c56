"""配置测试"""

import pytest
from pydantic import ValidationError

from task_manager.config import get_settings


class TestSettings:
    """测试环境变量配置"""

    def test_defaults(self):
        settings = get_settings({})
        assert settings.port == 8080
        assert settings.tasks_file == "tasks.json"
        assert settings.request_timeout == 2.0
        assert settings.cors_origins == ["*"]

    def test_from_environment(self):
        """测试读取带前缀的环境变量"""
        settings = get_settings({
            "TASK_MANAGER_PORT": "9000",
            "TASK_MANAGER_TASKS_FILE": "/tmp/data.json",
            "TASK_MANAGER_REQUEST_TIMEOUT": "0.5",
            "TASK_MANAGER_LOG_LEVEL": "debug",
            "TASK_MANAGER_CORS_ORIGINS": "http://a.test, http://b.test",
            "PORT": "1",
        })
        assert settings.port == 9000
        assert settings.tasks_file == "/tmp/data.json"
        assert settings.request_timeout == 0.5
        assert settings.log_level == "DEBUG"
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_invalid_timeout(self):
        with pytest.raises(ValidationError):
            get_settings({"TASK_MANAGER_REQUEST_TIMEOUT": "0"})
