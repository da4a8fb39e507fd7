"""Lifecycle enumerations for projects, tasks and tickets."""

from enum import Enum


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    APPROVED = "approved"
    CANCELLED = "cancelled"


class TicketStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    CLOSED = "closed"


class Resolution(str, Enum):
    FIXED = "fixed"
    DUPLICATE = "duplicate"
    WONT_FIX = "wont-fix"
    CANNOT_REPRODUCE = "cannot-reproduce"
    WORKS_AS_DESIGNED = "works-as-designed"


class Priority(str, Enum):
    """Priority levels, declared from lowest to highest."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return list(Priority).index(self)


class TaskCategory(str, Enum):
    BUG = "bug"
    FEATURE = "feature"
    ENHANCEMENT = "enhancement"
    MAINTENANCE = "maintenance"
    DOCUMENTATION = "documentation"


class TimeFrame(str, Enum):
    """Analytics look-back windows."""

    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"
    ONE_YEAR = "1y"

    @property
    def days(self) -> int:
        return {"7d": 7, "30d": 30, "90d": 90, "1y": 365}[self.value]


# Manual status changes accepted through task updates
TASK_TRANSITIONS = {
    TaskStatus.OPEN: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED},
    TaskStatus.IN_PROGRESS: {TaskStatus.OPEN, TaskStatus.RESOLVED, TaskStatus.CANCELLED},
    TaskStatus.RESOLVED: {TaskStatus.IN_PROGRESS, TaskStatus.CLOSED},
    TaskStatus.CLOSED: {TaskStatus.IN_PROGRESS, TaskStatus.APPROVED},
    TaskStatus.CANCELLED: {TaskStatus.OPEN},
    TaskStatus.APPROVED: set(),
}

# Tasks that block project deletion
ACTIVE_TASK_STATUSES = (TaskStatus.OPEN.value, TaskStatus.IN_PROGRESS.value)

# Tasks counted as completed in performance figures
COMPLETED_TASK_STATUSES = (TaskStatus.RESOLVED.value, TaskStatus.CLOSED.value)

# Tasks that can no longer be overdue
FINISHED_TASK_STATUSES = (
    TaskStatus.RESOLVED.value,
    TaskStatus.CLOSED.value,
    TaskStatus.APPROVED.value,
    TaskStatus.CANCELLED.value,
)
