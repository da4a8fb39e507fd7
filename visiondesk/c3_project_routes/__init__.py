"""Project routes for VisionDesk."""

from visiondesk.c3_project_routes.project_routes import create_project_router

__all__ = ["create_project_router"]
