"""Task management routes."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from visiondesk.c1_role_enums import UserRole
from visiondesk.c1_status_enums import Priority, TaskCategory, TaskStatus
from visiondesk.c1_user_models.user import User
from visiondesk.c2_serialization_service import serialize_comment, serialize_task
from visiondesk.c2_task_service.task_service import TaskService
from visiondesk.c3_route_dependencies import (
    CamelModel,
    UtcDatetime,
    get_current_user,
    get_db_session,
    require_roles,
    success_response,
)

logger = logging.getLogger(__name__)


# Request Models
class CreateTaskRequest(CamelModel):
    title: str = Field(..., min_length=3, max_length=100, description="Task title")
    description: str = Field(..., min_length=5, max_length=500, description="Task description")
    project_id: str = Field(..., description="Owning project")
    assigned_to: str = Field(..., description="Assignee user ID")
    due_date: UtcDatetime = Field(..., description="Due date")
    priority: Priority = Field(Priority.MEDIUM, description="Priority level")
    category: TaskCategory = Field(TaskCategory.FEATURE, description="Kind of work")
    start_date: Optional[UtcDatetime] = Field(None, description="Start date")
    estimated_hours: Optional[float] = Field(None, ge=0.5, le=200, description="Estimate in hours")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    ticket: Optional[str] = Field(None, description="External ticket reference")


class UpdateTaskRequest(CamelModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=5, max_length=500)
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    category: Optional[TaskCategory] = None
    assigned_to: Optional[str] = Field(None, description="New assignee user ID")
    due_date: Optional[UtcDatetime] = None
    start_date: Optional[UtcDatetime] = None
    estimated_hours: Optional[float] = Field(None, ge=0.5, le=200)
    actual_hours: Optional[float] = Field(None, ge=0)
    tags: Optional[List[str]] = None
    ticket: Optional[str] = None


class AddCommentRequest(CamelModel):
    content: str = Field(..., min_length=1, max_length=500, description="Comment text")


def create_task_router():
    """Create the task router.

    Returns:
        APIRouter: Router with /api/tasks endpoints
    """
    router = APIRouter(prefix="/api/tasks", tags=["tasks"])
    managers = require_roles(UserRole.ADMIN, UserRole.MODERATOR)

    @router.get("")
    async def list_tasks(
        search: Optional[str] = Query(None),
        status: Optional[TaskStatus] = Query(None),
        priority: Optional[Priority] = Query(None),
        project_id: Optional[str] = Query(None, alias="projectId"),
        assigned_to: Optional[str] = Query(None, alias="assignedTo"),
        due_date: Optional[date] = Query(None, alias="dueDate"),
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        tasks, pagination = TaskService.list_tasks(
            db,
            current_user,
            search=search,
            status=status.value if status else None,
            priority=priority.value if priority else None,
            project_id=project_id,
            assigned_to=assigned_to,
            due_date=due_date,
            page=page,
            limit=limit,
        )
        return success_response(
            {"tasks": [serialize_task(t, include_comments=False) for t in tasks], "pagination": pagination},
            "Tasks retrieved successfully",
        )

    @router.get("/stats")
    async def task_stats(current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        return success_response(TaskService.get_task_stats(db, current_user), "Task statistics retrieved successfully")

    @router.get("/{task_id}")
    async def get_task(task_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        task = TaskService.get_task(db, current_user, task_id)
        return success_response({"task": serialize_task(task)}, "Task retrieved successfully")

    @router.post("")
    async def create_task(
        request: CreateTaskRequest,
        current_user: User = Depends(managers),
        db=Depends(get_db_session),
    ):
        task = TaskService.create_task(db, current_user, request.model_dump())
        return success_response({"task": serialize_task(task)}, "Task created successfully", 201)

    @router.put("/{task_id}")
    async def update_task(
        task_id: str,
        request: UpdateTaskRequest,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        task = TaskService.update_task(db, current_user, task_id, request.updates())
        return success_response({"task": serialize_task(task)}, "Task updated successfully")

    @router.delete("/{task_id}")
    async def delete_task(task_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        TaskService.delete_task(db, current_user, task_id)
        return success_response(None, "Task deleted successfully")

    @router.post("/{task_id}/comments")
    async def add_comment(
        task_id: str,
        request: AddCommentRequest,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        comment = TaskService.add_comment(db, current_user, task_id, request.content)
        return success_response({"comment": serialize_comment(comment)}, "Comment added successfully", 201)

    return router
