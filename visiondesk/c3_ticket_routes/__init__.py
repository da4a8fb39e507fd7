"""Ticket routes for VisionDesk."""

from visiondesk.c3_ticket_routes.ticket_routes import create_ticket_router

__all__ = ["create_ticket_router"]
