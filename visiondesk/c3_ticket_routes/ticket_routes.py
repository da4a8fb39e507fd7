"""Ticket lifecycle routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from visiondesk.c1_role_enums import UserRole
from visiondesk.c1_status_enums import Resolution, TicketStatus
from visiondesk.c1_user_models.user import User
from visiondesk.c2_serialization_service import serialize_ticket
from visiondesk.c2_ticket_service.ticket_service import TicketService
from visiondesk.c3_route_dependencies import (
    CamelModel,
    get_current_user,
    get_db_session,
    get_settings_dep,
    require_roles,
    success_response,
)
from visiondesk.core.config import Settings

logger = logging.getLogger(__name__)


# Request Models
class CreateTicketRequest(CamelModel):
    task_id: str = Field(..., description="Task being resolved")
    title: str = Field(..., min_length=3, max_length=100, description="Ticket title")
    description: str = Field(..., min_length=5, max_length=1000, description="What was done")
    notes: str = Field(..., min_length=10, max_length=2000, description="Resolution notes")
    time_spent: float = Field(..., ge=0, description="Hours spent")
    resolution: Optional[Resolution] = Field(None, description="Resolution, defaults to fixed")


class VerifyTicketRequest(CamelModel):
    # Validated by TicketService.verify_ticket
    status: str = Field(..., description="verified or rejected")
    verification_notes: Optional[str] = Field(None, max_length=1000, description="Verifier notes")
    resolution: Optional[Resolution] = Field(None, description="Override the resolution")


class UpdateTicketRequest(CamelModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=5, max_length=1000)
    notes: Optional[str] = Field(None, min_length=10, max_length=2000)
    resolution: Optional[Resolution] = None
    time_spent: Optional[float] = Field(None, ge=0)


class CloseTicketRequest(CamelModel):
    notes: Optional[str] = Field(None, max_length=1000, description="Closure notes")


def create_ticket_router():
    """Create the ticket router.

    Returns:
        APIRouter: Router with /api/tickets endpoints
    """
    router = APIRouter(prefix="/api/tickets", tags=["tickets"])
    verifiers = require_roles(UserRole.ADMIN, UserRole.MODERATOR)

    @router.get("")
    async def list_tickets(
        status: Optional[TicketStatus] = Query(None),
        resolution: Optional[Resolution] = Query(None),
        resolved_by: Optional[str] = Query(None, alias="resolvedBy"),
        task_id: Optional[str] = Query(None, alias="taskId"),
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        tickets, pagination = TicketService.list_tickets(
            db,
            current_user,
            status=status.value if status else None,
            resolution=resolution.value if resolution else None,
            resolved_by=resolved_by,
            task_id=task_id,
            page=page,
            limit=limit,
        )
        return success_response(
            {"tickets": [serialize_ticket(t) for t in tickets], "pagination": pagination},
            "Tickets retrieved successfully",
        )

    @router.get("/stats")
    async def ticket_stats(current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        return success_response(
            TicketService.get_ticket_stats(db, current_user),
            "Ticket statistics retrieved successfully",
        )

    @router.get("/{ticket_id}")
    async def get_ticket(ticket_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        ticket = TicketService.get_ticket(db, current_user, ticket_id)
        return success_response({"ticket": serialize_ticket(ticket)}, "Ticket retrieved successfully")

    @router.post("")
    async def create_ticket(
        request: CreateTicketRequest,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        """Resolve a task by raising a ticket against it."""
        ticket = TicketService.create_ticket(db, current_user, request.model_dump())
        return success_response({"ticket": serialize_ticket(ticket)}, "Ticket created successfully", 201)

    @router.put("/{ticket_id}/verify")
    async def verify_ticket(
        ticket_id: str,
        request: VerifyTicketRequest,
        current_user: User = Depends(verifiers),
        db=Depends(get_db_session),
        settings: Settings = Depends(get_settings_dep),
    ):
        ticket = TicketService.verify_ticket(
            db,
            current_user,
            ticket_id,
            request.status,
            verification_notes=request.verification_notes,
            resolution=request.resolution,
            verify_scope=settings.auth.moderator_verify_scope,
        )
        return success_response({"ticket": serialize_ticket(ticket)}, f"Ticket {ticket.status} successfully")

    @router.put("/{ticket_id}/close")
    async def close_ticket(
        ticket_id: str,
        request: Optional[CloseTicketRequest] = None,
        current_user: User = Depends(verifiers),
        db=Depends(get_db_session),
        settings: Settings = Depends(get_settings_dep),
    ):
        ticket = TicketService.close_ticket(
            db,
            current_user,
            ticket_id,
            notes=request.notes if request else None,
            verify_scope=settings.auth.moderator_verify_scope,
        )
        return success_response({"ticket": serialize_ticket(ticket)}, "Ticket closed successfully")

    @router.put("/{ticket_id}")
    async def update_ticket(
        ticket_id: str,
        request: UpdateTicketRequest,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        ticket = TicketService.update_ticket(db, current_user, ticket_id, request.updates())
        return success_response({"ticket": serialize_ticket(ticket)}, "Ticket updated successfully")

    @router.delete("/{ticket_id}")
    async def delete_ticket(ticket_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        TicketService.delete_ticket(db, current_user, ticket_id)
        return success_response(None, "Ticket deleted successfully")

    return router
