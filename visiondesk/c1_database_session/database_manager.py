"""Database manager and session utilities for VisionDesk."""

import logging
from contextlib import contextmanager
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from visiondesk.c1_database_session.base import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manager for database operations."""

    def __init__(self, database_url: str = "sqlite:///visiondesk.db", echo: bool = False):
        """Initialize database connection."""
        self.database_url = database_url
        engine_kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
                engine_kwargs["poolclass"] = StaticPool
        self.engine = create_engine(database_url, **engine_kwargs)
        if database_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self):
        """Create all database tables."""
        # Model modules register themselves on Base.metadata when imported
        import visiondesk.c1_user_models.user  # noqa: F401
        import visiondesk.c1_project_models.project  # noqa: F401
        import visiondesk.c1_task_models.task  # noqa: F401
        import visiondesk.c1_ticket_models.ticket  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Database tables ready at {self.engine.url!r}")

    def drop_tables(self):
        """Drop all database tables."""
        Base.metadata.drop_all(bind=self.engine)

    def get_session(self):
        """Get a new database session."""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope around a series of operations."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
