"""Task models for VisionDesk."""

from visiondesk.c1_task_models.task import Task, TaskComment

__all__ = ["Task", "TaskComment"]
