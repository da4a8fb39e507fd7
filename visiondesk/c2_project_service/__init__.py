"""Project management service for VisionDesk."""

from visiondesk.c2_project_service.project_service import ProjectService

__all__ = ["ProjectService"]
