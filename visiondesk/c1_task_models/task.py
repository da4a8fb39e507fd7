"""Task and task comment models for VisionDesk."""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Text,
    Float,
    DateTime,
    ForeignKey,
    CheckConstraint,
    JSON,
    Index,
)
from sqlalchemy.orm import relationship
from visiondesk.c1_database_session import Base


class Task(Base):
    """A unit of work inside a project, assigned to one user."""

    __tablename__ = "tasks"

    id = Column(String, primary_key=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    assigned_to = Column(String, ForeignKey("users.id"), nullable=False)
    created_by = Column(String, ForeignKey("users.id"), nullable=False)
    status = Column(
        String,
        CheckConstraint(
            "status IN ('open', 'in-progress', 'resolved', 'closed', 'approved', 'cancelled')",
            name="ck_tasks_status",
        ),
        default="open",
        nullable=False,
    )
    priority = Column(
        String,
        CheckConstraint("priority IN ('low', 'medium', 'high', 'urgent')", name="ck_tasks_priority"),
        default="medium",
        nullable=False,
    )
    category = Column(
        String,
        CheckConstraint(
            "category IN ('bug', 'feature', 'enhancement', 'maintenance', 'documentation')",
            name="ck_tasks_category",
        ),
        default="feature",
        nullable=False,
    )
    due_date = Column(DateTime, nullable=False)
    start_date = Column(DateTime, default=datetime.utcnow)
    completed_date = Column(DateTime)
    estimated_hours = Column(Float)
    actual_hours = Column(
        Float,
        CheckConstraint("actual_hours >= 0", name="ck_tasks_actual_hours"),
        default=0,
        nullable=False,
    )
    tags = Column(JSON, default=list)
    ticket = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    project = relationship("Project", back_populates="tasks")
    assignee = relationship("User", foreign_keys=[assigned_to])
    creator = relationship("User", foreign_keys=[created_by])
    comments = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskComment.created_at",
    )
    tickets = relationship("Ticket", back_populates="task", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_tasks_project", "project_id"),
        Index("idx_tasks_assigned_to", "assigned_to"),
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_due_date", "due_date"),
        Index("idx_tasks_updated_at", "updated_at"),
    )

    def mark_status(self, status: str, now: datetime = None):
        """Set the status and keep the completion date consistent."""
        now = now or datetime.utcnow()
        if status in ("resolved", "closed"):
            if self.completed_date is None or self.status not in ("resolved", "closed"):
                self.completed_date = now
        else:
            self.completed_date = None
        self.status = status

    def add_hours(self, hours: float):
        """Adjust actual hours, never letting the total drop below zero."""
        self.actual_hours = max(0.0, (self.actual_hours or 0.0) + hours)


class TaskComment(Base):
    """Comment left on a task."""

    __tablename__ = "task_comments"

    id = Column(String, primary_key=True)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    task = relationship("Task", back_populates="comments")
    author = relationship("User")

    __table_args__ = (Index("idx_task_comments_task", "task_id"),)
