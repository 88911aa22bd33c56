"""任务增删改查 API"""
import logging
import re
from contextlib import contextmanager
from typing import Iterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response
from fastapi.responses import JSONResponse

from ..context import Context
from ..exceptions import TaskStoreError
from ..models.task import Task, CreateTaskRequest, UpdateTaskRequest
from ..services.task_service import TaskService
from .deps import get_task_service, request_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tasks", tags=["任务管理"])

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(raw: str) -> float:
    """
    解析时长字符串，返回秒数

    支持 "300ms"、"2s"、"1m30s"、"1.5h" 等写法，"0" 可省略单位。

    Raises:
        ValueError: 格式不合法
    """
    text = raw
    sign = 1.0
    if text and text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    if text == "0":
        return 0.0
    if not text:
        raise ValueError(f"invalid duration: {raw!r}")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ValueError(f"invalid duration: {raw!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return sign * total


def parse_delay(raw: Optional[str]) -> float:
    """解析 ?delay= 参数，缺省为 0，不允许负数"""
    if not raw:
        return 0.0

    delay = parse_duration(raw)
    if delay < 0:
        raise ValueError("delay must be >= 0")
    return delay


@contextmanager
def _storage_errors(detail: str) -> Iterator[None]:
    """存储层故障统一映射为 500，取消/超时交给全局异常处理"""
    try:
        yield
    except (TaskStoreError, OSError) as e:
        logger.error(f"{detail}: {e}")
        raise HTTPException(status_code=500, detail=detail) from e


@router.get(
    "/",
    response_model=List[Task],
    summary="任务列表",
    description="返回全部任务，支持 ?delay= 模拟慢 I/O 以演示取消与超时"
)
def list_tasks(
    delay: Optional[str] = Query(None, description="模拟慢 I/O，例如 200ms 或 2s"),
    ctx: Context = Depends(request_context),
    service: TaskService = Depends(get_task_service),
):
    """
    获取任务列表

    - **delay**: 可选，等待时长；超过请求超时时返回 408
    """
    try:
        seconds = parse_delay(delay)
    except ValueError:
        return JSONResponse(
            status_code=400,
            content={"error": "无效的 delay 参数，示例: ?delay=200ms 或 ?delay=2s"},
        )

    with _storage_errors("加载任务失败"):
        return service.list_tasks(ctx, seconds)


@router.post(
    "/",
    response_model=Task,
    status_code=201,
    summary="创建任务",
    description="分配ID、写入文件并返回创建的任务"
)
def create_task(
    request: CreateTaskRequest,
    ctx: Context = Depends(request_context),
    service: TaskService = Depends(get_task_service),
):
    """
    创建任务

    - **title**: 标题（1-100字符）
    - **done**: 是否完成，默认 false
    - **priority**: 优先级 low/medium/high
    """
    with _storage_errors("保存任务失败"):
        return service.create_task(ctx, request)


@router.get(
    "/{task_id}",
    response_model=Task,
    summary="查询任务",
    description="根据任务ID查询任务"
)
def get_task(
    task_id: int = Path(..., description="任务ID"),
    ctx: Context = Depends(request_context),
    service: TaskService = Depends(get_task_service),
):
    with _storage_errors("查询任务失败"):
        task = service.get_task(ctx, task_id)

    if task is None:
        raise HTTPException(status_code=404, detail="任务不存在")
    return task


@router.api_route(
    "/{task_id}",
    methods=["PUT", "PATCH"],
    response_model=Task,
    summary="更新任务",
    description="部分更新：只覆盖请求中出现的字段"
)
def update_task(
    request: UpdateTaskRequest,
    task_id: int = Path(..., description="任务ID"),
    ctx: Context = Depends(request_context),
    service: TaskService = Depends(get_task_service),
):
    """
    更新任务

    - **task_id**: 任务ID，请求体中的 id 会被忽略
    - 未出现的字段保持原值
    """
    with _storage_errors("保存任务失败"):
        updated = service.update_task(ctx, task_id, request)

    if updated is None:
        raise HTTPException(status_code=404, detail="任务不存在")
    return updated


@router.delete(
    "/{task_id}",
    status_code=204,
    summary="删除任务",
    description="删除任务并写入文件"
)
def delete_task(
    task_id: int = Path(..., description="任务ID"),
    ctx: Context = Depends(request_context),
    service: TaskService = Depends(get_task_service),
):
    with _storage_errors("保存任务失败"):
        deleted = service.delete_task(ctx, task_id)

    if not deleted:
        raise HTTPException(status_code=404, detail="任务不存在")
    return Response(status_code=204)
