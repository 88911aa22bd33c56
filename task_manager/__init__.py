"""任务管理服务 - 基于 JSON 文件的任务增删改查"""

__version__ = "1.0.0"
