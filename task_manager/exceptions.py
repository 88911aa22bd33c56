"""任务管理服务自定义异常"""


class TaskManagerError(Exception):
    """任务管理基础异常"""
    pass


class ContextError(TaskManagerError):
    """上下文已结束（取消或超时）"""
    pass


class Cancelled(ContextError):
    """上下文被取消：客户端断开或服务正在关闭"""

    def __init__(self, message: str = "context canceled"):
        super().__init__(message)


class DeadlineExceeded(ContextError):
    """上下文超过截止时间"""

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


class TaskStoreError(TaskManagerError):
    """任务存储错误"""
    pass


class TaskStoreParseError(TaskStoreError):
    """任务文件内容无法解析"""
    pass
