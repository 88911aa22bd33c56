import logging
from typing import List, Optional, Tuple

from ..context import Context
from ..exceptions import ContextError
from ..locks import RWLock
from ..models.task import Task, CreateTaskRequest, UpdateTaskRequest
from ..storage.task_store import TaskStore

logger = logging.getLogger(__name__)


def calc_next_id(tasks) -> int:
    """下一个可用ID：现有最大ID + 1，空列表时为 1"""
    return max((task.id for task in tasks), default=0) + 1


class TaskService:
    """
    任务业务层：持有内存中的任务列表和下一个ID

    两者由同一把读写锁保护。所有修改都遵循
    “构建候选列表 -> 写入存储 -> 提交到内存” 的顺序，
    写入失败时内存状态保持不变，读者永远看不到中间状态。

    已知边界：如果取消发生在存储写入成功之后，内存提交仍会进行，
    调用照常返回成功（写入之后没有检查点）。
    """

    def __init__(self, store: TaskStore, tasks: Tuple[Task, ...] = (), next_id: int = 1):
        self.store = store
        self._lock = RWLock()
        self._tasks: Tuple[Task, ...] = tuple(tasks)
        self._next_id = next_id

    @classmethod
    def from_store(cls, ctx: Context, store: TaskStore) -> "TaskService":
        """
        创建服务并从存储加载任务

        Args:
            ctx: 上下文，初始化同样遵守取消
            store: 任务存储

        Returns:
            TaskService 实例
        """
        loaded = store.load(ctx)
        service = cls(store, tuple(loaded), calc_next_id(loaded))
        logger.info(f"任务服务已初始化: {len(loaded)} 个任务, 下一个ID: {service._next_id}")
        return service

    @property
    def next_id(self) -> int:
        with self._lock.read_locked():
            return self._next_id

    def list_tasks(self, ctx: Context, delay: float = 0.0) -> List[Task]:
        """
        返回任务列表的副本

        Args:
            ctx: 请求上下文
            delay: 模拟慢 I/O 的等待秒数，可被 ctx 打断
        """
        ctx.check()

        if delay > 0:
            ctx.sleep(delay)

        ctx.check()

        with self._lock.read_locked():
            return list(self._tasks)

    def get_task(self, ctx: Context, task_id: int) -> Optional[Task]:
        """按ID查询任务，不存在时返回 None"""
        ctx.check()

        with self._lock.read_locked():
            return self._find(task_id)[1]

    def create_task(self, ctx: Context, request: CreateTaskRequest) -> Task:
        """创建任务，分配ID并持久化"""
        ctx.check()

        with self._lock.write_locked():
            ctx.check()

            created = Task(
                id=self._next_id,
                title=request.title,
                done=request.done,
                priority=request.priority,
            )

            # 先构建新列表，写盘成功前不动内存
            candidate = self._tasks + (created,)
            self._persist(ctx, candidate, f"创建任务 {created.id}")

            self._tasks = candidate
            self._next_id += 1

        logger.info(f"任务已创建: {created.id}")
        return created

    def update_task(self, ctx: Context, task_id: int, request: UpdateTaskRequest) -> Optional[Task]:
        """部分更新任务，不存在时返回 None 且不写盘"""
        ctx.check()

        with self._lock.write_locked():
            ctx.check()

            index, existing = self._find(task_id)
            if existing is None:
                return None

            updated = request.apply_to(existing)

            candidate = self._tasks[:index] + (updated,) + self._tasks[index + 1:]
            self._persist(ctx, candidate, f"更新任务 {task_id}")

            self._tasks = candidate

        logger.info(f"任务已更新: {task_id}")
        return updated

    def delete_task(self, ctx: Context, task_id: int) -> bool:
        """删除任务，不存在时返回 False 且不写盘"""
        ctx.check()

        with self._lock.write_locked():
            ctx.check()

            index, existing = self._find(task_id)
            if existing is None:
                return False

            candidate = self._tasks[:index] + self._tasks[index + 1:]
            self._persist(ctx, candidate, f"删除任务 {task_id}")

            self._tasks = candidate

        logger.info(f"任务已删除: {task_id}")
        return True

    def _find(self, task_id: int) -> Tuple[int, Optional[Task]]:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index, task
        return -1, None

    def _persist(self, ctx: Context, candidate: Tuple[Task, ...], action: str) -> None:
        try:
            self.store.save(ctx, candidate)
        except ContextError as e:
            logger.warning(f"{action} 已中止: {e}")
            raise
        except Exception as e:
            logger.error(f"{action} 写入失败: {e}", exc_info=True)
            raise
