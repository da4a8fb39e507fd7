"""Service layer for tasks, their assignment and manual status changes."""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import case, func, or_

from visiondesk.c1_database_session import generate_id
from visiondesk.c1_project_models.project import Project
from visiondesk.c1_status_enums import (
    FINISHED_TASK_STATUSES,
    TASK_TRANSITIONS,
    Priority,
    TaskCategory,
    TaskStatus,
)
from visiondesk.c1_task_models.task import Task, TaskComment
from visiondesk.c1_user_models.user import User
from visiondesk.c2_access_policy import access_policy
from visiondesk.core.errors import InvalidStateTransition, NotFoundError, ValidationError
from visiondesk.core.pagination import get_pagination_data, get_skip_value, normalize_page
from visiondesk.core.validators import check_choice, check_length, check_range

logger = logging.getLogger(__name__)

PRIORITY_ORDER = case(
    {p.value: p.rank for p in Priority},
    value=Task.priority,
    else_=0,
)


class TaskService:
    """Service for managing task operations."""

    @staticmethod
    def get_or_404(db, task_id: str) -> Task:
        task = db.query(Task).filter_by(id=task_id).first()
        if task is None:
            raise NotFoundError.for_entity("Task")
        return task

    @staticmethod
    def _resolve_assignee(db, project: Project, user_id: str) -> User:
        assignee = db.query(User).filter_by(id=user_id).first()
        if assignee is None:
            raise NotFoundError("Assigned user not found")
        if not access_policy.can_be_assigned(assignee, project):
            raise ValidationError(
                "User is not part of this project",
                errors=[{"field": "assignedTo", "message": "Assignee must be the project creator or a team member"}],
            )
        return assignee

    @staticmethod
    def check_transition(current: str, target: str):
        """Raise ``InvalidStateTransition`` unless ``current -> target`` is a manual move."""
        allowed = TASK_TRANSITIONS.get(TaskStatus(current), set())
        if TaskStatus(target) not in allowed:
            raise InvalidStateTransition(f"Cannot change task status from '{current}' to '{target}'")

    @staticmethod
    def list_tasks(
        db,
        actor: User,
        search: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        project_id: Optional[str] = None,
        assigned_to: Optional[str] = None,
        due_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Task], Dict[str, Any]]:
        """List tasks visible to ``actor``, most urgent first then by due date."""
        page, limit = normalize_page(page, limit)
        query = db.query(Task).filter(access_policy.task_scope(actor))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
        if status:
            query = query.filter(Task.status == check_choice(status, TaskStatus, "status"))
        if priority:
            query = query.filter(Task.priority == check_choice(priority, Priority, "priority"))
        if project_id:
            query = query.filter(Task.project_id == project_id)
        if assigned_to:
            query = query.filter(Task.assigned_to == assigned_to)
        if due_date:
            day_start = datetime(due_date.year, due_date.month, due_date.day)
            query = query.filter(Task.due_date >= day_start, Task.due_date < day_start + timedelta(days=1))

        total = query.count()
        tasks = (
            query.order_by(PRIORITY_ORDER.desc(), Task.due_date.asc())
            .offset(get_skip_value(page, limit))
            .limit(limit)
            .all()
        )
        return tasks, get_pagination_data(page, limit, total)

    @staticmethod
    def get_task_stats(db, actor: User, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        scope = access_policy.task_scope(actor)

        by_status = {status.value: 0 for status in TaskStatus}
        for status, count in db.query(Task.status, func.count(Task.id)).filter(scope).group_by(Task.status).all():
            by_status[status] = count

        by_priority = {priority.value: 0 for priority in Priority}
        for priority, count in db.query(Task.priority, func.count(Task.id)).filter(scope).group_by(Task.priority).all():
            by_priority[priority] = count

        by_category = {category.value: 0 for category in TaskCategory}
        for category, count in db.query(Task.category, func.count(Task.id)).filter(scope).group_by(Task.category).all():
            by_category[category] = count

        overdue = (
            db.query(func.count(Task.id))
            .filter(scope, Task.due_date < now, Task.status.notin_(FINISHED_TASK_STATUSES))
            .scalar()
        )
        hours = db.query(func.sum(Task.estimated_hours), func.sum(Task.actual_hours)).filter(scope).one()
        return {
            "totalTasks": sum(by_status.values()),
            "byStatus": by_status,
            "byPriority": by_priority,
            "byCategory": by_category,
            "overdueTasks": overdue or 0,
            "totalEstimatedHours": float(hours[0] or 0),
            "totalActualHours": float(hours[1] or 0),
        }

    @staticmethod
    def get_task(db, actor: User, task_id: str) -> Task:
        task = TaskService.get_or_404(db, task_id)
        access_policy.ensure(access_policy.can_read_task(actor, task), "You do not have access to this task")
        return task

    @staticmethod
    def create_task(db, actor: User, data: Dict[str, Any]) -> Task:
        """Create a task inside a project the actor belongs to."""
        title = check_length(data.get("title"), "title", 3, 100)
        description = check_length(data.get("description"), "description", 5, 500)
        if not title or not description:
            raise ValidationError("Title and description are required")
        if not data.get("project_id") or not data.get("assigned_to"):
            raise ValidationError("Project and assignee are required")
        if data.get("due_date") is None:
            raise ValidationError(
                "Due date is required",
                errors=[{"field": "dueDate", "message": "Due date is required"}],
            )

        project = db.query(Project).filter_by(id=data["project_id"]).first()
        if project is None:
            raise NotFoundError.for_entity("Project")
        access_policy.ensure(
            access_policy.can_create_task_in(actor, project),
            "You can only create tasks in projects you belong to",
        )
        assignee = TaskService._resolve_assignee(db, project, data["assigned_to"])

        task = Task(
            id=generate_id("task"),
            title=title,
            description=description,
            project_id=project.id,
            assigned_to=assignee.id,
            created_by=actor.id,
            status=TaskStatus.OPEN.value,
            priority=check_choice(data.get("priority") or Priority.MEDIUM.value, Priority, "priority"),
            category=check_choice(data.get("category") or TaskCategory.FEATURE.value, TaskCategory, "category"),
            due_date=data["due_date"],
            start_date=data.get("start_date") or datetime.utcnow(),
            estimated_hours=check_range(data.get("estimated_hours"), "estimatedHours", 0.5, 200),
            actual_hours=0.0,
            tags=list(data.get("tags") or []),
            ticket=data.get("ticket"),
        )
        db.add(task)
        db.flush()
        logger.info(f"Task {task.id} created in project {project.id} by {actor.id}, assigned to {assignee.id}")
        return task

    @staticmethod
    def update_task(db, actor: User, task_id: str, updates: Dict[str, Any]) -> Task:
        """Update task fields, guarding status changes and reassignment separately."""
        task = TaskService.get_or_404(db, task_id)
        access_policy.ensure(access_policy.can_update_task(actor, task), "You do not have access to this task")

        status = check_choice(updates.get("status"), TaskStatus, "status")
        if status is not None and status != task.status:
            access_policy.ensure(
                access_policy.can_change_task_status(actor, task),
                "Only the assignee, the task creator or the project creator can change the status",
            )
            TaskService.check_transition(task.status, status)

        assigned_to = updates.get("assigned_to")
        if assigned_to is not None and assigned_to != task.assigned_to:
            access_policy.ensure(
                access_policy.can_reassign_task(actor, task),
                "Only the project creator, a moderator or an admin can reassign tasks",
            )
            task.assigned_to = TaskService._resolve_assignee(db, task.project, assigned_to).id

        if updates.get("title") is not None:
            task.title = check_length(updates["title"], "title", 3, 100)
        if updates.get("description") is not None:
            task.description = check_length(updates["description"], "description", 5, 500)
        if updates.get("priority") is not None:
            task.priority = check_choice(updates["priority"], Priority, "priority")
        if updates.get("category") is not None:
            task.category = check_choice(updates["category"], TaskCategory, "category")
        if updates.get("due_date") is not None:
            task.due_date = updates["due_date"]
        if updates.get("start_date") is not None:
            task.start_date = updates["start_date"]
        if "estimated_hours" in updates:
            task.estimated_hours = check_range(updates["estimated_hours"], "estimatedHours", 0.5, 200)
        if updates.get("actual_hours") is not None:
            task.actual_hours = check_range(updates["actual_hours"], "actualHours", minimum=0)
        if "tags" in updates:
            task.tags = list(updates["tags"] or [])
        if "ticket" in updates:
            task.ticket = updates["ticket"]

        if status is not None and status != task.status:
            old_status = task.status
            task.mark_status(status)
            logger.info(f"[TASK_STATUS] Task {task.id}: {old_status} -> {status} by {actor.id}")

        db.flush()
        return task

    @staticmethod
    def delete_task(db, actor: User, task_id: str) -> None:
        task = TaskService.get_or_404(db, task_id)
        access_policy.ensure(
            access_policy.can_delete_task(actor, task),
            "Only the task creator, the project creator or an admin can delete this task",
        )
        db.delete(task)
        db.flush()
        logger.info(f"Task {task_id} deleted by {actor.id}")

    @staticmethod
    def add_comment(db, actor: User, task_id: str, content: str) -> TaskComment:
        task = TaskService.get_or_404(db, task_id)
        access_policy.ensure(access_policy.can_comment_on_task(actor, task), "You do not have access to this task")
        content = check_length(content, "content", 1, 500)
        if not content:
            raise ValidationError("Comment content is required")

        comment = TaskComment(
            id=generate_id("comment"),
            task_id=task.id,
            author_id=actor.id,
            content=content,
        )
        task.comments.append(comment)
        db.flush()
        logger.info(f"Comment {comment.id} added to task {task.id} by {actor.id}")
        return comment
