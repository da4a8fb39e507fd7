"""User administration routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import EmailStr, Field

from visiondesk.c1_role_enums import UserRole
from visiondesk.c1_user_models.user import User
from visiondesk.c2_serialization_service import serialize_user
from visiondesk.c2_user_service.user_service import UserService
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
class CreateUserRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=50, description="Display name")
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, description="Initial password")
    role: UserRole = Field(UserRole.USER, description="System role")
    is_active: bool = Field(True, description="Whether the account can sign in")


class UpdateUserRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50, description="Display name")
    email: Optional[EmailStr] = Field(None, description="Login email")
    profile_image: Optional[str] = Field(None, description="Profile image URL")
    role: Optional[UserRole] = Field(None, description="System role (admin only)")
    is_active: Optional[bool] = Field(None, description="Account status (admin only)")


class AssignRoleRequest(CamelModel):
    role: UserRole = Field(..., description="New system role")


def create_user_router():
    """Create the user administration router.

    Returns:
        APIRouter: Router with /api/users endpoints
    """
    router = APIRouter(prefix="/api/users", tags=["users"])
    admin_only = require_roles(UserRole.ADMIN)

    @router.get("")
    async def list_users(
        search: Optional[str] = Query(None),
        role: Optional[UserRole] = Query(None),
        is_active: Optional[bool] = Query(None, alias="isActive"),
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        users, pagination = UserService.list_users(
            db,
            search=search,
            role=role.value if role else None,
            is_active=is_active,
            page=page,
            limit=limit,
        )
        return success_response(
            {"users": [serialize_user(u) for u in users], "pagination": pagination},
            "Users retrieved successfully",
        )

    @router.get("/stats")
    async def user_stats(current_user: User = Depends(admin_only), db=Depends(get_db_session)):
        return success_response(UserService.get_user_stats(db), "User statistics retrieved successfully")

    @router.get("/{user_id}")
    async def get_user(user_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        user = UserService.get_user(db, current_user, user_id)
        return success_response({"user": serialize_user(user)}, "User retrieved successfully")

    @router.post("")
    async def create_user(
        request: CreateUserRequest,
        current_user: User = Depends(admin_only),
        db=Depends(get_db_session),
        settings: Settings = Depends(get_settings_dep),
    ):
        user = UserService.create_user(
            db,
            current_user,
            name=request.name,
            email=request.email,
            password=request.password,
            role=request.role,
            is_active=request.is_active,
            config=settings.auth,
        )
        return success_response({"user": serialize_user(user)}, "User created successfully", 201)

    @router.put("/{user_id}")
    async def update_user(
        user_id: str,
        request: UpdateUserRequest,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        user = UserService.update_user(db, current_user, user_id, request.updates())
        return success_response({"user": serialize_user(user)}, "User updated successfully")

    @router.delete("/{user_id}")
    async def delete_user(user_id: str, current_user: User = Depends(admin_only), db=Depends(get_db_session)):
        UserService.delete_user(db, current_user, user_id)
        return success_response(None, "User deactivated successfully")

    @router.put("/{user_id}/role")
    async def assign_role(
        user_id: str,
        request: AssignRoleRequest,
        current_user: User = Depends(admin_only),
        db=Depends(get_db_session),
    ):
        user = UserService.assign_role(db, current_user, user_id, request.role)
        return success_response({"user": serialize_user(user)}, "Role assigned successfully")

    return router
