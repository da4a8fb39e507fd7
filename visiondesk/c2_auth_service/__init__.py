"""Authentication service for VisionDesk."""

from visiondesk.c2_auth_service.passwords import hash_password, verify_password
from visiondesk.c2_auth_service.tokens import (
    create_access_token,
    create_refresh_token,
    verify_access_token,
    verify_refresh_token,
    create_token_pair,
    hash_token,
)
from visiondesk.c2_auth_service.refresh_token_store import RefreshTokenStore
from visiondesk.c2_auth_service.auth_service import AuthService

__all__ = [
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "verify_access_token",
    "verify_refresh_token",
    "create_token_pair",
    "hash_token",
    "RefreshTokenStore",
    "AuthService",
]
