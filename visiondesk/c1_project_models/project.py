"""Project and team membership models for VisionDesk."""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    Float,
    DateTime,
    ForeignKey,
    CheckConstraint,
    JSON,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from visiondesk.c1_database_session import Base


class Project(Base):
    """A project owned by its creator and shared with a team."""

    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(
        String,
        CheckConstraint("status IN ('active', 'completed', 'cancelled')", name="ck_projects_status"),
        default="active",
        nullable=False,
    )
    priority = Column(
        String,
        CheckConstraint("priority IN ('low', 'medium', 'high', 'urgent')", name="ck_projects_priority"),
        default="medium",
        nullable=False,
    )
    created_by = Column(String, ForeignKey("users.id"), nullable=False)
    start_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    due_date = Column(DateTime)
    completed_date = Column(DateTime)
    progress = Column(
        Integer,
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_projects_progress"),
        default=0,
        nullable=False,
    )
    tags = Column(JSON, default=list)
    budget = Column(Float)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    creator = relationship("User", foreign_keys=[created_by])
    team_members = relationship(
        "ProjectTeamMember",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectTeamMember.joined_at",
    )
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_projects_created_by", "created_by"),
        Index("idx_projects_status", "status"),
        Index("idx_projects_created_at", "created_at"),
    )

    def member_ids(self):
        return {member.user_id for member in self.team_members}

    def member_role(self, user_id: str):
        for member in self.team_members:
            if member.user_id == user_id:
                return member.role
        return None

    def mark_status(self, status: str, now: datetime = None):
        """Set the status and keep completion fields consistent."""
        now = now or datetime.utcnow()
        if status == "completed" and self.status != "completed":
            self.completed_date = now
            self.progress = 100
        elif status != "completed" and self.status == "completed":
            self.completed_date = None
        self.status = status


class ProjectTeamMember(Base):
    """Membership of a user in a project team."""

    __tablename__ = "project_team_members"

    id = Column(String, primary_key=True)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(
        String,
        CheckConstraint("role IN ('lead', 'developer', 'tester', 'designer')", name="ck_team_members_role"),
        default="developer",
        nullable=False,
    )
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="team_members")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_team_member"),
        Index("idx_team_members_user", "user_id"),
    )
