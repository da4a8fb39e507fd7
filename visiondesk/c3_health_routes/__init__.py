"""Health check routes for VisionDesk."""

from visiondesk.c3_health_routes.health_routes import router

__all__ = ["router"]
