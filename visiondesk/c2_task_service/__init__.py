"""Task management service for VisionDesk."""

from visiondesk.c2_task_service.task_service import TaskService

__all__ = ["TaskService"]
