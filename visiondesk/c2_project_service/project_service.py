"""Service layer for projects and their teams."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_

from visiondesk.c1_database_session import generate_id
from visiondesk.c1_project_models.project import Project, ProjectTeamMember
from visiondesk.c1_role_enums import TeamRole
from visiondesk.c1_status_enums import ACTIVE_TASK_STATUSES, Priority, ProjectStatus
from visiondesk.c1_task_models.task import Task
from visiondesk.c1_user_models.user import User
from visiondesk.c2_access_policy import access_policy
from visiondesk.core.errors import InvalidStateTransition, NotFoundError, ValidationError
from visiondesk.core.pagination import get_pagination_data, get_skip_value, normalize_page
from visiondesk.core.validators import check_choice, check_length, check_range

logger = logging.getLogger(__name__)

PROJECT_TASK_PREVIEW_LIMIT = 20


class ProjectService:
    """Service for managing project operations."""

    @staticmethod
    def get_or_404(db, project_id: str) -> Project:
        project = db.query(Project).filter_by(id=project_id).first()
        if project is None:
            raise NotFoundError.for_entity("Project")
        return project

    @staticmethod
    def _build_team(db, members: List[Dict[str, Any]], project: Optional[Project] = None) -> List[ProjectTeamMember]:
        """Resolve requested members, dropping duplicates and failing on unknown users.

        Existing memberships of ``project`` are reused so a replaced team keeps
        join dates and never re-inserts the same (project, user) pair.
        """
        existing = {m.user_id: m for m in project.team_members} if project is not None else {}
        team = []
        seen = set()
        for member in members or []:
            user_id = member.get("user_id") or member.get("user")
            if not user_id or user_id in seen:
                continue
            if db.query(User).filter_by(id=user_id).first() is None:
                raise ValidationError(
                    "One or more team members not found",
                    errors=[{"field": "teamMembers", "message": f"User {user_id} does not exist"}],
                )
            seen.add(user_id)
            role = check_choice(member.get("role") or TeamRole.DEVELOPER.value, TeamRole, "role")
            if user_id in existing:
                existing[user_id].role = role
                team.append(existing[user_id])
                continue
            team.append(ProjectTeamMember(
                id=generate_id("member"),
                user_id=user_id,
                role=role,
                joined_at=datetime.utcnow(),
            ))
        return team

    @staticmethod
    def list_projects(
        db,
        actor: User,
        search: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Project], Dict[str, Any]]:
        """List the projects visible to ``actor``, newest first."""
        page, limit = normalize_page(page, limit)
        query = db.query(Project).filter(access_policy.project_scope(actor))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Project.title.ilike(pattern), Project.description.ilike(pattern)))
        if status:
            query = query.filter(Project.status == check_choice(status, ProjectStatus, "status"))
        if priority:
            query = query.filter(Project.priority == check_choice(priority, Priority, "priority"))

        total = query.count()
        projects = (
            query.order_by(Project.created_at.desc())
            .offset(get_skip_value(page, limit))
            .limit(limit)
            .all()
        )
        return projects, get_pagination_data(page, limit, total)

    @staticmethod
    def list_for_user_with_tasks(db, actor: User) -> List[Tuple[Project, List[Task]]]:
        """Projects the actor belongs to, each with the tasks assigned to them."""
        projects = (
            db.query(Project)
            .filter(access_policy.project_scope(actor))
            .order_by(Project.created_at.desc())
            .all()
        )
        result = []
        for project in projects:
            tasks = (
                db.query(Task)
                .filter(Task.project_id == project.id, Task.assigned_to == actor.id)
                .order_by(Task.due_date.asc())
                .all()
            )
            result.append((project, tasks))
        return result

    @staticmethod
    def get_project_stats(db, actor: User) -> Dict[str, Any]:
        scope = access_policy.project_scope(actor)
        by_status = {status.value: 0 for status in ProjectStatus}
        rows = db.query(Project.status, func.count(Project.id)).filter(scope).group_by(Project.status).all()
        for status, count in rows:
            by_status[status] = count

        by_priority = {priority.value: 0 for priority in Priority}
        rows = db.query(Project.priority, func.count(Project.id)).filter(scope).group_by(Project.priority).all()
        for priority, count in rows:
            by_priority[priority] = count

        avg_progress = db.query(func.avg(Project.progress)).filter(scope).scalar()
        return {
            "totalProjects": sum(by_status.values()),
            "activeProjects": by_status[ProjectStatus.ACTIVE.value],
            "completedProjects": by_status[ProjectStatus.COMPLETED.value],
            "cancelledProjects": by_status[ProjectStatus.CANCELLED.value],
            "avgProgress": round(float(avg_progress or 0), 2),
            "byPriority": by_priority,
        }

    @staticmethod
    def get_project(db, actor: User, project_id: str) -> Tuple[Project, List[Task]]:
        """Return a project and a preview of its most recent tasks."""
        project = ProjectService.get_or_404(db, project_id)
        access_policy.ensure(access_policy.can_read_project(actor, project), "You do not have access to this project")
        tasks = (
            db.query(Task)
            .filter(Task.project_id == project.id)
            .order_by(Task.created_at.desc())
            .limit(PROJECT_TASK_PREVIEW_LIMIT)
            .all()
        )
        return project, tasks

    @staticmethod
    def create_project(db, actor: User, data: Dict[str, Any]) -> Project:
        """Create a project owned by ``actor``."""
        title = check_length(data.get("title"), "title", 3, 100)
        description = check_length(data.get("description"), "description", 10, 1000)
        if not title or not description:
            raise ValidationError("Title and description are required")

        start_date = data.get("start_date") or datetime.utcnow()
        due_date = data.get("due_date")
        if due_date is not None and due_date < start_date:
            raise ValidationError(
                "Due date must be after the start date",
                errors=[{"field": "dueDate", "message": "Due date must be after the start date"}],
            )

        project = Project(
            id=generate_id("project"),
            title=title,
            description=description,
            status=ProjectStatus.ACTIVE.value,
            priority=check_choice(data.get("priority") or Priority.MEDIUM.value, Priority, "priority"),
            created_by=actor.id,
            start_date=start_date,
            due_date=due_date,
            progress=0,
            tags=list(data.get("tags") or []),
            budget=check_range(data.get("budget"), "budget", minimum=0),
        )
        project.team_members = ProjectService._build_team(db, data.get("team_members"))
        status = data.get("status")
        if status:
            project.mark_status(check_choice(status, ProjectStatus, "status"))

        db.add(project)
        db.flush()
        logger.info(f"Project {project.id} '{title}' created by {actor.id} with {len(project.team_members)} members")
        return project

    @staticmethod
    def update_project(db, actor: User, project_id: str, updates: Dict[str, Any]) -> Project:
        project = ProjectService.get_or_404(db, project_id)
        access_policy.ensure(
            access_policy.can_write_project(actor, project),
            "Only the project creator or an admin can update this project",
        )

        if updates.get("title") is not None:
            project.title = check_length(updates["title"], "title", 3, 100)
        if updates.get("description") is not None:
            project.description = check_length(updates["description"], "description", 10, 1000)
        if updates.get("priority") is not None:
            project.priority = check_choice(updates["priority"], Priority, "priority")
        if "due_date" in updates:
            project.due_date = updates["due_date"]
        if updates.get("start_date") is not None:
            project.start_date = updates["start_date"]
        if "tags" in updates:
            project.tags = list(updates["tags"] or [])
        if "budget" in updates:
            project.budget = check_range(updates["budget"], "budget", minimum=0)
        if updates.get("progress") is not None:
            progress = check_range(float(updates["progress"]), "progress")
            project.progress = max(0, min(100, int(progress)))
        if updates.get("status") is not None:
            project.mark_status(check_choice(updates["status"], ProjectStatus, "status"))
        if updates.get("team_members") is not None:
            project.team_members = ProjectService._build_team(db, updates["team_members"], project)

        db.flush()
        logger.info(f"Project {project.id} updated by {actor.id}: {sorted(updates)}")
        return project

    @staticmethod
    def delete_project(db, actor: User, project_id: str) -> None:
        """Delete a project with no open or in-progress tasks, along with its tasks and tickets."""
        project = ProjectService.get_or_404(db, project_id)
        access_policy.ensure(
            access_policy.can_delete_project(actor, project),
            "Only the project creator or an admin can delete this project",
        )

        active = (
            db.query(func.count(Task.id))
            .filter(Task.project_id == project.id, Task.status.in_(ACTIVE_TASK_STATUSES))
            .scalar()
        )
        if active:
            logger.warning(f"Refusing to delete project {project.id}: {active} active tasks")
            raise InvalidStateTransition(
                f"Cannot delete project with {active} active task(s). Complete or cancel them first"
            )

        db.delete(project)
        db.flush()
        logger.info(f"Project {project_id} deleted by {actor.id}")

    @staticmethod
    def add_team_member(db, actor: User, project_id: str, user_id: str, role: str = TeamRole.DEVELOPER.value) -> Project:
        project = ProjectService.get_or_404(db, project_id)
        access_policy.ensure(
            access_policy.can_manage_team(actor, project),
            "Only the project creator or an admin can manage the team",
        )
        if db.query(User).filter_by(id=user_id).first() is None:
            raise NotFoundError.for_entity("User")
        if user_id in project.member_ids():
            raise ValidationError("User is already a team member")

        project.team_members.append(ProjectTeamMember(
            id=generate_id("member"),
            user_id=user_id,
            role=check_choice(role or TeamRole.DEVELOPER.value, TeamRole, "role"),
            joined_at=datetime.utcnow(),
        ))
        db.flush()
        logger.info(f"User {user_id} added to project {project.id} as {role}")
        return project

    @staticmethod
    def remove_team_member(db, actor: User, project_id: str, user_id: str) -> Project:
        project = ProjectService.get_or_404(db, project_id)
        access_policy.ensure(
            access_policy.can_manage_team(actor, project),
            "Only the project creator or an admin can manage the team",
        )
        member = next((m for m in project.team_members if m.user_id == user_id), None)
        if member is None:
            raise NotFoundError("User is not a team member of this project")

        project.team_members.remove(member)
        db.flush()
        logger.info(f"User {user_id} removed from project {project.id}")
        return project
