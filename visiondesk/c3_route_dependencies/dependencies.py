"""FastAPI dependencies for database sessions, settings and the current user."""

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from visiondesk.c1_user_models.user import User
from visiondesk.c2_access_policy import access_policy
from visiondesk.c2_auth_service.auth_service import AuthService
from visiondesk.core.config import Settings
from visiondesk.core.errors import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.server_state.settings


def get_db_session(request: Request):
    """Yield one session per request; it commits when the endpoint returns."""
    with request.app.state.server_state.db_manager.session_scope() as db:
        yield db


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization:
        raise AuthenticationError("Access denied. No token provided")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Access denied. Invalid authorization header")
    return token.strip()


def get_current_user(
    token: str = Depends(get_bearer_token),
    db=Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> User:
    return AuthService.authenticate(db, token, settings.auth)


def require_roles(*roles):
    """Dependency factory admitting only users whose role is in ``roles``."""
    allowed = [getattr(role, "value", role) for role in roles]

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not access_policy.has_role(current_user, *allowed):
            logger.warning(f"User {current_user.id} ({current_user.role}) denied; requires {allowed}")
            raise AuthorizationError(f"Access denied. Required role: {' or '.join(allowed)}")
        return current_user

    return dependency
