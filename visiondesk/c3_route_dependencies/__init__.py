"""Shared FastAPI dependencies, request base models and response envelope."""

from visiondesk.c3_route_dependencies.dependencies import (
    get_db_session,
    get_settings_dep,
    get_current_user,
    require_roles,
)
from visiondesk.c3_route_dependencies.responses import success_response, error_response
from visiondesk.c3_route_dependencies.request_models import CamelModel, UtcDatetime

__all__ = [
    "get_db_session",
    "get_settings_dep",
    "get_current_user",
    "require_roles",
    "success_response",
    "error_response",
    "CamelModel",
    "UtcDatetime",
]
