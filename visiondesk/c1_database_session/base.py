"""Database base and declarative_base for VisionDesk."""

import uuid
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def generate_id(prefix: str) -> str:
    """Return a new primary key such as ``task-<uuid>``."""
    return f"{prefix}-{uuid.uuid4()}"
