"""Ticket model: a resolution claim on a task awaiting verification."""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Text,
    Float,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship, validates
from visiondesk.c1_database_session import Base


class Ticket(Base):
    """Ticket raised when a task is reported as resolved."""

    __tablename__ = "tickets"

    id = Column(String, primary_key=True)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    resolved_by = Column(String, ForeignKey("users.id"), nullable=False)
    verified_by = Column(String, ForeignKey("users.id"))
    status = Column(
        String,
        CheckConstraint("status IN ('pending', 'verified', 'rejected', 'closed')", name="ck_tickets_status"),
        default="pending",
        nullable=False,
    )
    resolution = Column(
        String,
        CheckConstraint(
            "resolution IS NULL OR resolution IN "
            "('fixed', 'duplicate', 'wont-fix', 'cannot-reproduce', 'works-as-designed')",
            name="ck_tickets_resolution",
        ),
        default="fixed",
    )
    notes = Column(Text, nullable=False)
    verification_notes = Column(Text)
    time_spent = Column(
        Float,
        CheckConstraint("time_spent >= 0", name="ck_tickets_time_spent"),
        default=0,
        nullable=False,
    )
    resolved_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    verified_at = Column(DateTime)
    closed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    task = relationship("Task", back_populates="tickets")
    resolver = relationship("User", foreign_keys=[resolved_by])
    verifier = relationship("User", foreign_keys=[verified_by])

    __table_args__ = (
        Index("idx_tickets_task", "task_id"),
        Index("idx_tickets_resolved_by", "resolved_by"),
        Index("idx_tickets_status", "status"),
        Index("idx_tickets_resolved_at", "resolved_at"),
    )

    @validates("status")
    def validate_status(self, key, value):
        if value != "pending" and not self.resolution:
            raise ValueError("Resolution is required once a ticket leaves pending")
        return value

    def append_verification_notes(self, text: str):
        if self.verification_notes:
            self.verification_notes = f"{self.verification_notes}\n\n{text}"
        else:
            self.verification_notes = text
