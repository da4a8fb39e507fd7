"""Serialization of ORM records into API payloads."""

from visiondesk.c2_serialization_service.serializers import (
    serialize_user,
    serialize_user_summary,
    serialize_project,
    serialize_task,
    serialize_comment,
    serialize_ticket,
)

__all__ = [
    "serialize_user",
    "serialize_user_summary",
    "serialize_project",
    "serialize_task",
    "serialize_comment",
    "serialize_ticket",
]
