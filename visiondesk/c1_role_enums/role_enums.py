"""Role enumerations for users and project team members."""

from enum import Enum


class UserRole(str, Enum):
    """System-wide user roles."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class TeamRole(str, Enum):
    """Role a user holds inside a single project team."""

    LEAD = "lead"
    DEVELOPER = "developer"
    TESTER = "tester"
    DESIGNER = "designer"
