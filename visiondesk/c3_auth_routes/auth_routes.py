"""Authentication routes: registration, login, tokens and own profile."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field

from visiondesk.c1_user_models.user import User
from visiondesk.c2_auth_service.auth_service import AuthService
from visiondesk.c2_serialization_service import serialize_user
from visiondesk.c3_route_dependencies import (
    CamelModel,
    get_current_user,
    get_db_session,
    get_settings_dep,
    success_response,
)
from visiondesk.core.config import Settings

logger = logging.getLogger(__name__)


# Request Models
class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=50, description="Display name")
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, description="Plain-text password")


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1, description="Login email")
    password: str = Field(..., min_length=1, description="Plain-text password")


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token issued at login")


class LogoutRequest(CamelModel):
    refresh_token: Optional[str] = Field(None, description="Refresh token to revoke")


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50, description="Display name")
    email: Optional[EmailStr] = Field(None, description="Login email")
    profile_image: Optional[str] = Field(None, description="Profile image URL")


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=1, description="New password")


def _session_payload(user: User, tokens: dict) -> dict:
    payload = {
        "user": serialize_user(user),
        "accessToken": tokens["access_token"],
        "expiresIn": tokens["expires_in"],
        "tokenType": tokens["token_type"],
    }
    if "refresh_token" in tokens:
        payload["refreshToken"] = tokens["refresh_token"]
    return payload


def create_auth_router():
    """Create the authentication router.

    Returns:
        APIRouter: Router with /api/auth endpoints
    """
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post("/register")
    async def register(
        request: RegisterRequest,
        db=Depends(get_db_session),
        settings: Settings = Depends(get_settings_dep),
    ):
        """Create an account with role ``user`` and return a token pair."""
        user, tokens = AuthService.register(db, request.name, request.email, request.password, settings.auth)
        return success_response(_session_payload(user, tokens), "User registered successfully", 201)

    @router.post("/login")
    async def login(
        request: LoginRequest,
        db=Depends(get_db_session),
        settings: Settings = Depends(get_settings_dep),
    ):
        user, tokens = AuthService.login(db, request.email, request.password, settings.auth)
        return success_response(_session_payload(user, tokens), "Login successful")

    @router.post("/refresh")
    async def refresh(
        request: RefreshRequest,
        db=Depends(get_db_session),
        settings: Settings = Depends(get_settings_dep),
    ):
        tokens = AuthService.refresh(db, request.refresh_token, settings.auth)
        return success_response(
            {"accessToken": tokens["access_token"], "expiresIn": tokens["expires_in"], "tokenType": tokens["token_type"]},
            "Token refreshed successfully",
        )

    @router.post("/logout")
    async def logout(
        request: Optional[LogoutRequest] = None,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        AuthService.logout(db, request.refresh_token if request else None)
        logger.info(f"User {current_user.id} logged out")
        return success_response(None, "Logout successful")

    @router.get("/verify")
    async def verify(current_user: User = Depends(get_current_user)):
        return success_response({"valid": True, "user": serialize_user(current_user)}, "Token is valid")

    @router.get("/profile")
    async def get_profile(current_user: User = Depends(get_current_user)):
        return success_response({"user": serialize_user(current_user)}, "Profile retrieved successfully")

    @router.put("/profile")
    async def update_profile(
        request: UpdateProfileRequest,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        user = AuthService.update_profile(
            db,
            current_user,
            name=request.name,
            email=request.email,
            profile_image=request.profile_image,
        )
        return success_response({"user": serialize_user(user)}, "Profile updated successfully")

    @router.put("/change-password")
    async def change_password(
        request: ChangePasswordRequest,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
        settings: Settings = Depends(get_settings_dep),
    ):
        AuthService.change_password(db, current_user, request.current_password, request.new_password, settings.auth)
        return success_response(None, "Password changed successfully")

    return router
