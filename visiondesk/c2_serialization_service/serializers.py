"""Convert ORM records to camelCase dictionaries for API responses.

Password hashes and refresh tokens never leave this module.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from visiondesk.c1_status_enums import FINISHED_TASK_STATUSES


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_user_summary(user) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
    }


def serialize_user(user) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "isActive": user.is_active,
        "profileImage": user.profile_image,
        "lastLogin": _iso(user.last_login),
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def serialize_project(project, tasks: Optional[List] = None) -> Dict[str, Any]:
    data = {
        "id": project.id,
        "title": project.title,
        "description": project.description,
        "status": project.status,
        "priority": project.priority,
        "createdBy": serialize_user_summary(project.creator),
        "teamMembers": [
            {
                "user": serialize_user_summary(member.user),
                "role": member.role,
                "joinedAt": _iso(member.joined_at),
            }
            for member in project.team_members
        ],
        "startDate": _iso(project.start_date),
        "dueDate": _iso(project.due_date),
        "completedDate": _iso(project.completed_date),
        "progress": project.progress,
        "tags": list(project.tags or []),
        "budget": project.budget,
        "createdAt": _iso(project.created_at),
        "updatedAt": _iso(project.updated_at),
    }
    if tasks is not None:
        data["tasks"] = [serialize_task(task, include_comments=False) for task in tasks]
    return data


def serialize_comment(comment) -> Dict[str, Any]:
    return {
        "id": comment.id,
        "author": serialize_user_summary(comment.author),
        "content": comment.content,
        "createdAt": _iso(comment.created_at),
    }


def serialize_task(task, include_comments: bool = True, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    data = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "projectId": task.project_id,
        "project": {"id": task.project.id, "title": task.project.title} if task.project else None,
        "assignedTo": serialize_user_summary(task.assignee),
        "createdBy": serialize_user_summary(task.creator),
        "status": task.status,
        "priority": task.priority,
        "category": task.category,
        "dueDate": _iso(task.due_date),
        "startDate": _iso(task.start_date),
        "completedDate": _iso(task.completed_date),
        "estimatedHours": task.estimated_hours,
        "actualHours": task.actual_hours,
        "tags": list(task.tags or []),
        "ticket": task.ticket,
        "isOverdue": bool(task.due_date and task.due_date < now and task.status not in FINISHED_TASK_STATUSES),
        "commentCount": len(task.comments),
        "createdAt": _iso(task.created_at),
        "updatedAt": _iso(task.updated_at),
    }
    if include_comments:
        data["comments"] = [serialize_comment(comment) for comment in task.comments]
    return data


def serialize_ticket(ticket) -> Dict[str, Any]:
    task = ticket.task
    return {
        "id": ticket.id,
        "taskId": ticket.task_id,
        "task": {
            "id": task.id,
            "title": task.title,
            "status": task.status,
            "projectId": task.project_id,
        } if task else None,
        "title": ticket.title,
        "description": ticket.description,
        "resolvedBy": serialize_user_summary(ticket.resolver),
        "verifiedBy": serialize_user_summary(ticket.verifier),
        "status": ticket.status,
        "resolution": ticket.resolution,
        "notes": ticket.notes,
        "verificationNotes": ticket.verification_notes,
        "timeSpent": ticket.time_spent,
        "resolvedAt": _iso(ticket.resolved_at),
        "verifiedAt": _iso(ticket.verified_at),
        "closedAt": _iso(ticket.closed_at),
        "createdAt": _iso(ticket.created_at),
        "updatedAt": _iso(ticket.updated_at),
    }
