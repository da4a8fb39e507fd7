"""Database session management for VisionDesk."""

from visiondesk.c1_database_session.base import Base, generate_id
from visiondesk.c1_database_session.database_manager import DatabaseManager

__all__ = ["Base", "DatabaseManager", "generate_id"]
