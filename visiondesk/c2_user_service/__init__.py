"""User administration service for VisionDesk."""

from visiondesk.c2_user_service.user_service import UserService

__all__ = ["UserService"]
