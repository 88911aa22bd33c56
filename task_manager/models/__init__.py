from .task import Task, TaskPriority, CreateTaskRequest, UpdateTaskRequest

__all__ = ["Task", "TaskPriority", "CreateTaskRequest", "UpdateTaskRequest"]
