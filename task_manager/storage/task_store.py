import json
import logging
from pathlib import Path
from typing import List, Sequence, Union

from pydantic import TypeAdapter, ValidationError

from ..context import Context
from ..exceptions import TaskStoreParseError
from ..locks import RWLock
from ..models.task import Task

logger = logging.getLogger(__name__)

_TASK_LIST = TypeAdapter(List[Task])


class TaskStore:
    """
    JSON 文件任务存储

    每次 load/save 都是整个任务列表的完整快照。读取持有共享锁，
    写入持有排他锁。每个可能阻塞的步骤前后都会检查 ctx，
    但已经交给文件系统的写入不会回滚。
    """

    def __init__(self, file_path: Union[str, Path], encoding: str = "utf-8"):
        self.file_path = Path(file_path)
        self.encoding = encoding
        self._lock = RWLock()

    def load(self, ctx: Context) -> List[Task]:
        """
        从文件加载任务列表

        Args:
            ctx: 请求上下文

        Returns:
            任务列表，文件不存在或为空时返回空列表

        Raises:
            TaskStoreParseError: 文件内容不是合法的任务列表
            OSError: 文件读取失败
            Cancelled, DeadlineExceeded: 在检查点观察到取消
        """
        ctx.check()

        with self._lock.read_locked():
            ctx.check()

            try:
                raw = self.file_path.read_bytes()
            except FileNotFoundError:
                # 首次启动，文件还不存在
                logger.info(f"任务文件不存在，使用空列表: {self.file_path}")
                return []

            ctx.check()

            try:
                content = raw.decode(self.encoding)
            except UnicodeDecodeError as e:
                raise TaskStoreParseError(f"任务文件编码错误: {self.file_path}: {e}") from e

            if not content.strip():
                return []

            try:
                tasks = _TASK_LIST.validate_json(content)
            except ValidationError as e:
                raise TaskStoreParseError(f"解析任务文件失败: {self.file_path}: {e}") from e

            ids = [task.id for task in tasks]
            if len(ids) != len(set(ids)):
                raise TaskStoreParseError(f"任务文件包含重复的ID: {self.file_path}")

            ctx.check()

        logger.debug(f"已加载 {len(tasks)} 个任务: {self.file_path}")
        return tasks

    def save(self, ctx: Context, tasks: Sequence[Task]) -> None:
        """
        将完整任务列表写入文件（一次覆盖写）

        Args:
            ctx: 请求上下文
            tasks: 要持久化的完整任务列表

        Raises:
            OSError: 文件写入失败
            Cancelled, DeadlineExceeded: 在检查点观察到取消
        """
        ctx.check()

        with self._lock.write_locked():
            ctx.check()

            data = json.dumps(
                [task.model_dump(mode="json") for task in tasks],
                indent=3,
                ensure_ascii=False,
            )

            ctx.check()

            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.file_path, "w", encoding=self.encoding) as f:
                f.write(data)

        logger.debug(f"已保存 {len(tasks)} 个任务: {self.file_path}")
