"""Ticket models for VisionDesk."""

from visiondesk.c1_ticket_models.ticket import Ticket

__all__ = ["Ticket"]
