"""Analytics routes for VisionDesk."""

from visiondesk.c3_analytics_routes.analytics_routes import create_analytics_router

__all__ = ["create_analytics_router"]
