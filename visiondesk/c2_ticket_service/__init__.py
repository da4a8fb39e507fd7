"""Ticket lifecycle service for VisionDesk."""

from visiondesk.c2_ticket_service.ticket_service import TicketService

__all__ = ["TicketService"]
