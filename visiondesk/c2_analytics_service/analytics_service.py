"""Read-only aggregates over projects, tasks and tickets.

Every query is narrowed by the actor's collection scope, so two users
asking for the same dashboard see figures computed over different rows.
Buckets with no rows are reported as zero rather than omitted.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, or_

from visiondesk.c1_project_models.project import Project
from visiondesk.c1_role_enums import UserRole
from visiondesk.c1_status_enums import (
    COMPLETED_TASK_STATUSES,
    FINISHED_TASK_STATUSES,
    Priority,
    ProjectStatus,
    Resolution,
    TaskStatus,
    TicketStatus,
)
from visiondesk.c1_task_models.task import Task
from visiondesk.c1_ticket_models.ticket import Ticket
from visiondesk.c1_user_models.user import User
from visiondesk.c2_access_policy import access_policy
from visiondesk.c2_analytics_service.time_windows import parse_time_frame, window_start
from visiondesk.core.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

MAX_TREND_DAYS = 365


def _count_where(condition):
    return func.sum(case((condition, 1), else_=0))


def _day(value) -> str:
    """Normalise a DATE() result (string on SQLite, date elsewhere) to YYYY-MM-DD."""
    return value if isinstance(value, str) else value.isoformat()


class AnalyticsService:
    """Service for dashboard and performance analytics."""

    @staticmethod
    def _project_stats(db, scope, start: datetime) -> Dict[str, Any]:
        by_status = {status.value: 0 for status in ProjectStatus}
        rows = (
            db.query(Project.status, func.count(Project.id))
            .filter(scope, Project.created_at >= start)
            .group_by(Project.status)
            .all()
        )
        for status, count in rows:
            by_status[status] = count
        avg_progress = db.query(func.avg(Project.progress)).filter(scope, Project.created_at >= start).scalar()
        return {
            "total": sum(by_status.values()),
            "active": by_status[ProjectStatus.ACTIVE.value],
            "completed": by_status[ProjectStatus.COMPLETED.value],
            "cancelled": by_status[ProjectStatus.CANCELLED.value],
            "avgProgress": round(float(avg_progress or 0), 2),
        }

    @staticmethod
    def _project_trend(db, scope, start: datetime) -> List[Dict[str, Any]]:
        day = func.date(Project.created_at)
        rows = (
            db.query(day, Project.status, func.count(Project.id))
            .filter(scope, Project.created_at >= start)
            .group_by(day, Project.status)
            .order_by(day.asc(), Project.status.asc())
            .all()
        )
        return [{"date": _day(d), "status": status, "count": count} for d, status, count in rows]

    @staticmethod
    def _task_stats(db, scope, start: datetime, now: datetime) -> Dict[str, Any]:
        by_status = {status.value: 0 for status in TaskStatus}
        rows = (
            db.query(Task.status, func.count(Task.id))
            .filter(scope, Task.created_at >= start)
            .group_by(Task.status)
            .all()
        )
        for status, count in rows:
            by_status[status] = count
        overdue = (
            db.query(func.count(Task.id))
            .filter(
                scope,
                Task.created_at >= start,
                Task.due_date < now,
                Task.status.notin_(FINISHED_TASK_STATUSES),
            )
            .scalar()
        )
        return {
            "total": sum(by_status.values()),
            "open": by_status[TaskStatus.OPEN.value],
            "inProgress": by_status[TaskStatus.IN_PROGRESS.value],
            "resolved": by_status[TaskStatus.RESOLVED.value],
            "closed": by_status[TaskStatus.CLOSED.value],
            "approved": by_status[TaskStatus.APPROVED.value],
            "cancelled": by_status[TaskStatus.CANCELLED.value],
            "overdue": overdue or 0,
        }

    @staticmethod
    def _priority_distribution(db, scope, start: datetime) -> Dict[str, int]:
        distribution = {priority.value: 0 for priority in Priority}
        rows = (
            db.query(Task.priority, func.count(Task.id))
            .filter(scope, Task.created_at >= start)
            .group_by(Task.priority)
            .all()
        )
        for priority, count in rows:
            distribution[priority] = count
        return distribution

    @staticmethod
    def _ticket_stats(db, scope, start: datetime) -> Dict[str, Any]:
        by_status = {status.value: 0 for status in TicketStatus}
        rows = (
            db.query(Ticket.status, func.count(Ticket.id))
            .filter(scope, Ticket.resolved_at >= start)
            .group_by(Ticket.status)
            .all()
        )
        for status, count in rows:
            by_status[status] = count
        total_time, avg_time = (
            db.query(func.sum(Ticket.time_spent), func.avg(Ticket.time_spent))
            .filter(scope, Ticket.resolved_at >= start)
            .one()
        )
        return {
            "total": sum(by_status.values()),
            "pending": by_status[TicketStatus.PENDING.value],
            "verified": by_status[TicketStatus.VERIFIED.value],
            "rejected": by_status[TicketStatus.REJECTED.value],
            "closed": by_status[TicketStatus.CLOSED.value],
            "totalTimeSpent": float(total_time or 0),
            "avgTimeSpent": round(float(avg_time or 0), 2),
        }

    @staticmethod
    def _resolution_distribution(db, scope, start: datetime) -> Dict[str, int]:
        distribution = {resolution.value: 0 for resolution in Resolution}
        rows = (
            db.query(Ticket.resolution, func.count(Ticket.id))
            .filter(scope, Ticket.resolved_at >= start, Ticket.resolution.isnot(None))
            .group_by(Ticket.resolution)
            .all()
        )
        for resolution, count in rows:
            distribution[resolution] = count
        return distribution

    @staticmethod
    def _user_performance(db, scope, start: datetime, limit: int) -> List[Dict[str, Any]]:
        completed = _count_where(Task.status.in_(COMPLETED_TASK_STATUSES))
        rows = (
            db.query(
                User.id,
                User.name,
                User.email,
                func.count(Task.id),
                completed,
                func.avg(Task.actual_hours),
            )
            .select_from(Task)
            .join(User, User.id == Task.assigned_to)
            .filter(scope, Task.updated_at >= start)
            .group_by(User.id, User.name, User.email)
            .all()
        )
        performance = []
        for user_id, name, email, total, done, avg_hours in rows:
            done = int(done or 0)
            performance.append({
                "user": {"id": user_id, "name": name, "email": email},
                "totalTasks": total,
                "completedTasks": done,
                "completionRate": round(done / total, 4) if total else 0.0,
                "avgActualHours": round(float(avg_hours or 0), 2),
            })
        performance.sort(key=lambda row: row["completionRate"], reverse=True)
        return performance[:limit]

    @staticmethod
    def _recent_activities(db, scope, limit: int) -> List[Dict[str, Any]]:
        tasks = db.query(Task).filter(scope).order_by(Task.updated_at.desc()).limit(limit).all()
        return [
            {
                "id": task.id,
                "title": task.title,
                "status": task.status,
                "priority": task.priority,
                "updatedAt": task.updated_at.isoformat() if task.updated_at else None,
                "assignedTo": {"id": task.assignee.id, "name": task.assignee.name} if task.assignee else None,
                "project": {"id": task.project.id, "title": task.project.title} if task.project else None,
            }
            for task in tasks
        ]

    @staticmethod
    def dashboard(
        db,
        actor: User,
        time_frame: Optional[str] = None,
        now: Optional[datetime] = None,
        leaderboard_size: int = 10,
        recent_activity_limit: int = 10,
        default_time_frame: str = "30d",
    ) -> Dict[str, Any]:
        """Overview figures for the actor's projects, tasks and tickets."""
        now = now or datetime.utcnow()
        frame = parse_time_frame(time_frame, default_time_frame)
        start = window_start(frame, now)

        project_scope = access_policy.project_scope(actor)
        task_scope = access_policy.task_scope(actor)
        ticket_scope = access_policy.ticket_scope(actor)

        user_performance = None
        if actor.role != UserRole.USER.value:
            user_performance = AnalyticsService._user_performance(db, task_scope, start, leaderboard_size)

        logger.debug(f"Dashboard for {actor.id} over {frame.value} starting {start.isoformat()}")
        return {
            "timeFrame": frame.value,
            "startDate": start.isoformat(),
            "endDate": now.isoformat(),
            "projectStats": AnalyticsService._project_stats(db, project_scope, start),
            "projectTrend": AnalyticsService._project_trend(db, project_scope, start),
            "taskStats": AnalyticsService._task_stats(db, task_scope, start, now),
            "priorityDistribution": AnalyticsService._priority_distribution(db, task_scope, start),
            "ticketStats": AnalyticsService._ticket_stats(db, ticket_scope, start),
            "resolutionDistribution": AnalyticsService._resolution_distribution(db, ticket_scope, start),
            "userPerformance": user_performance,
            "recentActivities": AnalyticsService._recent_activities(db, task_scope, recent_activity_limit),
        }

    @staticmethod
    def project_completion_trend(
        db,
        actor: User,
        days: int = 30,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """Per-day project counts, bucketed by completion date or else creation date."""
        if days is None or days < 1 or days > MAX_TREND_DAYS:
            raise ValidationError(
                f"Days must be between 1 and {MAX_TREND_DAYS}",
                errors=[{"field": "days", "message": f"Must be between 1 and {MAX_TREND_DAYS}"}],
            )
        now = now or datetime.utcnow()
        start = now - timedelta(days=days)

        projects = (
            db.query(Project)
            .filter(
                access_policy.project_scope(actor),
                or_(Project.completed_date >= start, Project.created_at >= start),
            )
            .all()
        )

        buckets = {}
        for project in projects:
            bucket_date = (project.completed_date or project.created_at).date().isoformat()
            bucket = buckets.setdefault(bucket_date, {"total": 0, "completed": 0, "progress": 0})
            bucket["total"] += 1
            bucket["progress"] += project.progress or 0
            if project.status == ProjectStatus.COMPLETED.value:
                bucket["completed"] += 1

        trend = OrderedDict(sorted(buckets.items()))
        return [
            {
                "date": bucket_date,
                "total": bucket["total"],
                "completed": bucket["completed"],
                "avgProgress": round(bucket["progress"] / bucket["total"], 2),
            }
            for bucket_date, bucket in trend.items()
        ]

    @staticmethod
    def team_performance(
        db,
        actor: User,
        time_frame: Optional[str] = None,
        project_id: Optional[str] = None,
        now: Optional[datetime] = None,
        default_time_frame: str = "30d",
    ) -> List[Dict[str, Any]]:
        """Per-assignee delivery figures for moderators and admins."""
        access_policy.ensure(
            access_policy.has_role(actor, UserRole.ADMIN, UserRole.MODERATOR),
            "Only moderators and admins can view team performance",
        )
        now = now or datetime.utcnow()
        frame = parse_time_frame(time_frame, default_time_frame)
        start = window_start(frame, now)

        filters = [access_policy.task_scope(actor), Task.updated_at >= start]
        if project_id:
            project = db.query(Project).filter_by(id=project_id).first()
            if project is None:
                raise NotFoundError.for_entity("Project")
            access_policy.ensure(
                access_policy.can_read_project(actor, project),
                "You do not have access to this project",
            )
            filters.append(Task.project_id == project_id)

        rows = (
            db.query(
                User.id,
                User.name,
                User.email,
                func.count(Task.id),
                _count_where(Task.status.in_(COMPLETED_TASK_STATUSES)),
                _count_where(Task.status == TaskStatus.IN_PROGRESS.value),
                _count_where((Task.due_date < now) & Task.status.notin_(FINISHED_TASK_STATUSES)),
                func.sum(Task.estimated_hours),
                func.sum(Task.actual_hours),
            )
            .select_from(Task)
            .join(User, User.id == Task.assigned_to)
            .filter(*filters)
            .group_by(User.id, User.name, User.email)
            .all()
        )

        performance = []
        for user_id, name, email, total, done, in_progress, overdue, estimated, actual in rows:
            done = int(done or 0)
            estimated = float(estimated or 0)
            actual = float(actual or 0)
            performance.append({
                "user": {"id": user_id, "name": name, "email": email},
                "totalTasks": total,
                "completedTasks": done,
                "inProgressTasks": int(in_progress or 0),
                "overdueTasks": int(overdue or 0),
                "totalEstimatedHours": estimated,
                "totalActualHours": actual,
                "completionRate": round(done / total * 100, 2) if total else 0.0,
                "efficiency": round(estimated / actual * 100) if actual else 0,
            })
        performance.sort(key=lambda row: row["completionRate"], reverse=True)
        return performance
