"""Service layer for tickets and the task status changes they drive.

Each operation that touches both a ticket and its task does so inside the
caller's session, so the two writes commit or roll back together.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func

from visiondesk.c1_database_session import generate_id
from visiondesk.c1_status_enums import Resolution, TaskStatus, TicketStatus
from visiondesk.c1_task_models.task import Task
from visiondesk.c1_ticket_models.ticket import Ticket
from visiondesk.c1_user_models.user import User
from visiondesk.c2_access_policy import access_policy
from visiondesk.core.errors import InvalidStateTransition, NotFoundError, ValidationError
from visiondesk.core.pagination import get_pagination_data, get_skip_value, normalize_page
from visiondesk.core.validators import check_choice, check_length, check_range

logger = logging.getLogger(__name__)

VERIFY_OUTCOMES = (TicketStatus.VERIFIED.value, TicketStatus.REJECTED.value)
DELETABLE_STATUSES = (TicketStatus.PENDING.value, TicketStatus.REJECTED.value)
RESOLVED_TASK_STATUSES = (TaskStatus.RESOLVED.value, TaskStatus.CLOSED.value)
TASK_HOLDING_STATUSES = (TicketStatus.PENDING.value, TicketStatus.VERIFIED.value, TicketStatus.CLOSED.value)


class TicketService:
    """Service for managing ticket operations."""

    @staticmethod
    def get_or_404(db, ticket_id: str) -> Ticket:
        ticket = db.query(Ticket).filter_by(id=ticket_id).first()
        if ticket is None:
            raise NotFoundError.for_entity("Ticket")
        return ticket

    @staticmethod
    def list_tickets(
        db,
        actor: User,
        status: Optional[str] = None,
        resolution: Optional[str] = None,
        resolved_by: Optional[str] = None,
        task_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Ticket], Dict[str, Any]]:
        """List tickets visible to ``actor``, most recently resolved first."""
        page, limit = normalize_page(page, limit)
        query = db.query(Ticket).filter(access_policy.ticket_scope(actor))
        if status:
            query = query.filter(Ticket.status == check_choice(status, TicketStatus, "status"))
        if resolution:
            query = query.filter(Ticket.resolution == check_choice(resolution, Resolution, "resolution"))
        if resolved_by:
            query = query.filter(Ticket.resolved_by == resolved_by)
        if task_id:
            query = query.filter(Ticket.task_id == task_id)

        total = query.count()
        tickets = (
            query.order_by(Ticket.resolved_at.desc())
            .offset(get_skip_value(page, limit))
            .limit(limit)
            .all()
        )
        return tickets, get_pagination_data(page, limit, total)

    @staticmethod
    def get_ticket_stats(db, actor: User) -> Dict[str, Any]:
        scope = access_policy.ticket_scope(actor)

        by_status = {status.value: 0 for status in TicketStatus}
        for status, count in db.query(Ticket.status, func.count(Ticket.id)).filter(scope).group_by(Ticket.status).all():
            by_status[status] = count

        resolution_breakdown = {resolution.value: 0 for resolution in Resolution}
        rows = (
            db.query(Ticket.resolution, func.count(Ticket.id))
            .filter(scope, Ticket.resolution.isnot(None))
            .group_by(Ticket.resolution)
            .all()
        )
        for resolution, count in rows:
            resolution_breakdown[resolution] = count

        total_time, avg_time = db.query(func.sum(Ticket.time_spent), func.avg(Ticket.time_spent)).filter(scope).one()
        return {
            "totalTickets": sum(by_status.values()),
            "pendingTickets": by_status[TicketStatus.PENDING.value],
            "verifiedTickets": by_status[TicketStatus.VERIFIED.value],
            "rejectedTickets": by_status[TicketStatus.REJECTED.value],
            "closedTickets": by_status[TicketStatus.CLOSED.value],
            "totalTimeSpent": float(total_time or 0),
            "avgTimeSpent": round(float(avg_time or 0), 2),
            "resolutionBreakdown": resolution_breakdown,
        }

    @staticmethod
    def get_ticket(db, actor: User, ticket_id: str) -> Ticket:
        ticket = TicketService.get_or_404(db, ticket_id)
        access_policy.ensure(access_policy.can_read_ticket(actor, ticket), "You do not have access to this ticket")
        return ticket

    @staticmethod
    def create_ticket(db, actor: User, data: Dict[str, Any]) -> Ticket:
        """Raise a ticket for a task and mark the task resolved."""
        title = check_length(data.get("title"), "title", 3, 100)
        description = check_length(data.get("description"), "description", 5, 1000)
        notes = check_length(data.get("notes"), "notes", 10, 2000)
        if not title or not description or not notes:
            raise ValidationError("Title, description and notes are required")
        time_spent = data.get("time_spent")
        if time_spent is None:
            raise ValidationError(
                "Time spent is required",
                errors=[{"field": "timeSpent", "message": "Time spent is required"}],
            )
        check_range(time_spent, "timeSpent", minimum=0)
        resolution = check_choice(data.get("resolution") or Resolution.FIXED.value, Resolution, "resolution")

        task = db.query(Task).filter_by(id=data.get("task_id")).first()
        if task is None:
            raise NotFoundError.for_entity("Task")
        access_policy.ensure(
            access_policy.can_resolve_task(actor, task),
            "You can only create tickets for tasks you have access to",
        )
        if task.status in RESOLVED_TASK_STATUSES:
            raise InvalidStateTransition(f"Task is already {task.status}")

        now = datetime.utcnow()
        ticket = Ticket(
            id=generate_id("ticket"),
            task_id=task.id,
            title=title,
            description=description,
            resolved_by=actor.id,
            resolution=resolution,
            status=TicketStatus.PENDING.value,
            notes=notes,
            time_spent=float(time_spent),
            resolved_at=now,
        )
        db.add(ticket)

        task.mark_status(TaskStatus.RESOLVED.value, now)
        task.add_hours(float(time_spent))
        db.flush()

        logger.info(
            f"[TICKET_CREATE] Ticket {ticket.id} for task {task.id} by {actor.id}; "
            f"task resolved, actual hours now {task.actual_hours}"
        )
        return ticket

    @staticmethod
    def verify_ticket(
        db,
        actor: User,
        ticket_id: str,
        status: str,
        verification_notes: Optional[str] = None,
        resolution: Optional[str] = None,
        verify_scope: str = access_policy.VERIFY_SCOPE_GLOBAL,
    ) -> Ticket:
        """Accept or reject a pending ticket, closing or reopening its task."""
        if status not in VERIFY_OUTCOMES:
            raise ValidationError(
                "Status must be either verified or rejected",
                errors=[{"field": "status", "message": "Must be one of: verified, rejected"}],
            )
        verification_notes = check_length(verification_notes, "verificationNotes", 0, 1000)
        resolution = check_choice(resolution, Resolution, "resolution")

        ticket = TicketService.get_or_404(db, ticket_id)
        access_policy.ensure(
            access_policy.can_verify_ticket(actor, ticket, verify_scope),
            "Only the project creator, a team lead, a moderator or an admin can verify tickets",
        )
        if ticket.status != TicketStatus.PENDING.value:
            raise InvalidStateTransition(f"Only pending tickets can be verified (ticket is {ticket.status})")

        now = datetime.utcnow()
        if resolution:
            ticket.resolution = resolution
        ticket.status = status
        ticket.verified_by = actor.id
        ticket.verified_at = now
        ticket.verification_notes = verification_notes or None

        task = ticket.task
        if status == TicketStatus.VERIFIED.value:
            task.mark_status(TaskStatus.CLOSED.value, now)
        else:
            task.mark_status(TaskStatus.IN_PROGRESS.value, now)
        db.flush()

        logger.info(f"[TICKET_VERIFY] Ticket {ticket.id} {status} by {actor.id}; task {task.id} -> {task.status}")
        return ticket

    @staticmethod
    def update_ticket(db, actor: User, ticket_id: str, updates: Dict[str, Any]) -> Ticket:
        """Edit a pending ticket; a new time spent moves the task's hours by the difference."""
        ticket = TicketService.get_or_404(db, ticket_id)
        access_policy.ensure(
            access_policy.can_update_ticket(actor, ticket),
            "Only the resolver, the project creator, a moderator or an admin can update this ticket",
        )
        if ticket.status != TicketStatus.PENDING.value:
            raise InvalidStateTransition("Only pending tickets can be updated")

        if updates.get("title") is not None:
            ticket.title = check_length(updates["title"], "title", 3, 100)
        if updates.get("description") is not None:
            ticket.description = check_length(updates["description"], "description", 5, 1000)
        if updates.get("notes") is not None:
            ticket.notes = check_length(updates["notes"], "notes", 10, 2000)
        if updates.get("resolution") is not None:
            ticket.resolution = check_choice(updates["resolution"], Resolution, "resolution")
        if updates.get("time_spent") is not None:
            new_time = float(check_range(updates["time_spent"], "timeSpent", minimum=0))
            ticket.task.add_hours(new_time - (ticket.time_spent or 0.0))
            ticket.time_spent = new_time

        db.flush()
        logger.info(f"Ticket {ticket.id} updated by {actor.id}: {sorted(updates)}")
        return ticket

    @staticmethod
    def delete_ticket(db, actor: User, ticket_id: str) -> None:
        """Withdraw a pending or rejected ticket.

        The task is reopened only when no other pending, verified or closed
        ticket still holds it resolved.
        """
        ticket = TicketService.get_or_404(db, ticket_id)
        access_policy.ensure(
            access_policy.can_delete_ticket(actor, ticket),
            "Only the resolver, the project creator or an admin can delete this ticket",
        )
        if ticket.status not in DELETABLE_STATUSES:
            raise InvalidStateTransition("Only pending or rejected tickets can be deleted")

        task = ticket.task
        holding = (
            db.query(Ticket)
            .filter(
                Ticket.task_id == task.id,
                Ticket.id != ticket.id,
                Ticket.status.in_(TASK_HOLDING_STATUSES),
            )
            .first()
        )
        if task.status in RESOLVED_TASK_STATUSES and holding is None:
            task.mark_status(TaskStatus.IN_PROGRESS.value)
        task.add_hours(-(ticket.time_spent or 0.0))

        db.delete(ticket)
        db.flush()
        logger.info(f"[TICKET_DELETE] Ticket {ticket_id} deleted by {actor.id}; task {task.id} -> {task.status}")

    @staticmethod
    def close_ticket(
        db,
        actor: User,
        ticket_id: str,
        notes: Optional[str] = None,
        verify_scope: str = access_policy.VERIFY_SCOPE_GLOBAL,
    ) -> Ticket:
        """Close a verified ticket, appending closure notes."""
        ticket = TicketService.get_or_404(db, ticket_id)
        access_policy.ensure(
            access_policy.can_close_ticket(actor, ticket, verify_scope),
            "Only the project creator, a team lead, a moderator or an admin can close tickets",
        )
        if ticket.status != TicketStatus.VERIFIED.value:
            raise InvalidStateTransition("Only verified tickets can be closed")

        ticket.status = TicketStatus.CLOSED.value
        ticket.closed_at = datetime.utcnow()
        if notes and notes.strip():
            ticket.append_verification_notes(f"Closure Notes: {notes.strip()}")
        db.flush()

        logger.info(f"[TICKET_CLOSE] Ticket {ticket.id} closed by {actor.id}")
        return ticket
