"""API 依赖项"""
from typing import Iterator

from fastapi import Request

from ..context import Context
from ..services.task_service import TaskService


def get_task_service(request: Request) -> TaskService:
    """获取应用级任务服务实例"""
    return request.app.state.task_service


def request_context(request: Request) -> Iterator[Context]:
    """
    为每个请求创建带超时的上下文

    上下文派生自应用根上下文：服务关闭时根上下文被取消，
    进行中的请求会在下一个检查点观察到取消。请求结束时上下文随之取消。
    """
    root: Context = request.app.state.root_context
    ctx = root.with_timeout(request.app.state.settings.request_timeout)
    try:
        yield ctx
    finally:
        ctx.cancel()
