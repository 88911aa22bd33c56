from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, StrictBool
from typing import Annotated, ClassVar, Optional, Tuple


TITLE_MAX_LENGTH = 100

TaskTitle = Annotated[str, Field(min_length=1, max_length=TITLE_MAX_LENGTH)]


class TaskPriority(str, Enum):
    """任务优先级枚举"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(BaseModel):
    """任务模型（不可变，内存与文件共用同一结构）"""
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., gt=0, description="任务ID")
    title: TaskTitle = Field(..., description="任务标题")
    done: StrictBool = Field(default=False, description="是否完成")
    priority: TaskPriority = Field(..., description="优先级")


class CreateTaskRequest(BaseModel):
    """创建任务请求"""
    title: TaskTitle = Field(..., description="任务标题（1-100字符）")
    done: StrictBool = Field(default=False, description="是否完成")
    priority: TaskPriority = Field(..., description="优先级：low/medium/high")


class UpdateTaskRequest(BaseModel):
    """
    部分更新请求

    只有请求中显式出现的字段才会覆盖原值，出现与否通过
    model_fields_set 区分，所以 {"done": false} 与 {} 含义不同。
    显式传入 null 视为未出现。请求体中的 id 会被忽略。
    """
    title: Optional[TaskTitle] = Field(None, description="任务标题（1-100字符）")
    done: Optional[StrictBool] = Field(None, description="是否完成")
    priority: Optional[TaskPriority] = Field(None, description="优先级：low/medium/high")

    MERGE_FIELDS: ClassVar[Tuple[str, ...]] = ("title", "done", "priority")

    def apply_to(self, task: Task) -> Task:
        """
        将出现的字段合并到已有任务上

        Args:
            task: 原任务

        Returns:
            合并后的新任务，原任务不变
        """
        changes = {}
        for name in self.MERGE_FIELDS:
            if name not in self.model_fields_set:
                continue
            value = getattr(self, name)
            if value is not None:
                changes[name] = value
        return task.model_copy(update=changes)
