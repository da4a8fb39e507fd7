"""User and credential models for VisionDesk."""

from visiondesk.c1_user_models.user import User, RefreshToken

__all__ = ["User", "RefreshToken"]
