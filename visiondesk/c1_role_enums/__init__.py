"""Role enums for VisionDesk."""

from visiondesk.c1_role_enums.role_enums import UserRole, TeamRole

__all__ = ["UserRole", "TeamRole"]
