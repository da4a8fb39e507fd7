"""Status and classification enums for VisionDesk."""

from visiondesk.c1_status_enums.status_enums import (
    ProjectStatus,
    TaskStatus,
    TicketStatus,
    Resolution,
    Priority,
    TaskCategory,
    TimeFrame,
    TASK_TRANSITIONS,
    ACTIVE_TASK_STATUSES,
    COMPLETED_TASK_STATUSES,
    FINISHED_TASK_STATUSES,
)

__all__ = [
    "ProjectStatus",
    "TaskStatus",
    "TicketStatus",
    "Resolution",
    "Priority",
    "TaskCategory",
    "TimeFrame",
    "TASK_TRANSITIONS",
    "ACTIVE_TASK_STATUSES",
    "COMPLETED_TASK_STATUSES",
    "FINISHED_TASK_STATUSES",
]
