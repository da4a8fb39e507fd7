"""Authorization predicates and collection scopes for VisionDesk."""

from visiondesk.c2_access_policy import access_policy

__all__ = ["access_policy"]
