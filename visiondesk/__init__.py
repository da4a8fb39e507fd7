"""VisionDesk - role-based project, task and ticket management API."""

__version__ = "1.0.0"
