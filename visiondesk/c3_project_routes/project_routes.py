"""Project management routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from visiondesk.c1_role_enums import TeamRole, UserRole
from visiondesk.c1_status_enums import Priority, ProjectStatus
from visiondesk.c1_user_models.user import User
from visiondesk.c2_project_service.project_service import ProjectService
from visiondesk.c2_serialization_service import serialize_project
from visiondesk.c3_route_dependencies import (
    CamelModel,
    UtcDatetime,
    get_current_user,
    get_db_session,
    require_roles,
    success_response,
)

logger = logging.getLogger(__name__)


# Request Models
class TeamMemberInput(CamelModel):
    user: str = Field(..., description="User ID of the member")
    role: TeamRole = Field(TeamRole.DEVELOPER, description="Role inside the project team")


class CreateProjectRequest(CamelModel):
    title: str = Field(..., min_length=3, max_length=100, description="Project title")
    description: str = Field(..., min_length=10, max_length=1000, description="Project description")
    priority: Priority = Field(Priority.MEDIUM, description="Priority level")
    status: Optional[ProjectStatus] = Field(None, description="Initial status")
    start_date: Optional[UtcDatetime] = Field(None, description="Start date")
    due_date: Optional[UtcDatetime] = Field(None, description="Target completion date")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    budget: Optional[float] = Field(None, ge=0, description="Budget")
    team_members: List[TeamMemberInput] = Field(default_factory=list, description="Initial team")


class UpdateProjectRequest(CamelModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    status: Optional[ProjectStatus] = None
    priority: Optional[Priority] = None
    start_date: Optional[UtcDatetime] = None
    due_date: Optional[UtcDatetime] = None
    progress: Optional[float] = Field(None, description="Progress percentage, clamped to 0-100")
    tags: Optional[List[str]] = None
    budget: Optional[float] = Field(None, ge=0)
    team_members: Optional[List[TeamMemberInput]] = Field(None, description="Replacement team")


class AddTeamMemberRequest(CamelModel):
    user_id: str = Field(..., description="User to add")
    role: TeamRole = Field(TeamRole.DEVELOPER, description="Role inside the project team")


def create_project_router():
    """Create the project router.

    Returns:
        APIRouter: Router with /api/projects endpoints
    """
    router = APIRouter(prefix="/api/projects", tags=["projects"])
    managers = require_roles(UserRole.ADMIN, UserRole.MODERATOR)

    @router.get("")
    async def list_projects(
        search: Optional[str] = Query(None),
        status: Optional[ProjectStatus] = Query(None),
        priority: Optional[Priority] = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        projects, pagination = ProjectService.list_projects(
            db,
            current_user,
            search=search,
            status=status.value if status else None,
            priority=priority.value if priority else None,
            page=page,
            limit=limit,
        )
        return success_response(
            {"projects": [serialize_project(p) for p in projects], "pagination": pagination},
            "Projects retrieved successfully",
        )

    @router.get("/user")
    async def list_user_projects(
        current_user: User = Depends(require_roles(UserRole.USER)),
        db=Depends(get_db_session),
    ):
        """Projects the caller belongs to, with the tasks assigned to them."""
        entries = ProjectService.list_for_user_with_tasks(db, current_user)
        return success_response(
            {"projects": [serialize_project(project, tasks) for project, tasks in entries]},
            "User projects retrieved successfully",
        )

    @router.get("/stats")
    async def project_stats(current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        return success_response(
            ProjectService.get_project_stats(db, current_user),
            "Project statistics retrieved successfully",
        )

    @router.get("/{project_id}")
    async def get_project(project_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        project, tasks = ProjectService.get_project(db, current_user, project_id)
        return success_response({"project": serialize_project(project, tasks)}, "Project retrieved successfully")

    @router.post("")
    async def create_project(
        request: CreateProjectRequest,
        current_user: User = Depends(managers),
        db=Depends(get_db_session),
    ):
        project = ProjectService.create_project(db, current_user, request.model_dump())
        return success_response({"project": serialize_project(project)}, "Project created successfully", 201)

    @router.put("/{project_id}")
    async def update_project(
        project_id: str,
        request: UpdateProjectRequest,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        project = ProjectService.update_project(db, current_user, project_id, request.updates())
        return success_response({"project": serialize_project(project)}, "Project updated successfully")

    @router.delete("/{project_id}")
    async def delete_project(project_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db_session)):
        ProjectService.delete_project(db, current_user, project_id)
        return success_response(None, "Project deleted successfully")

    @router.put("/{project_id}/team-members")
    async def add_team_member(
        project_id: str,
        request: AddTeamMemberRequest,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        project = ProjectService.add_team_member(db, current_user, project_id, request.user_id, request.role)
        return success_response({"project": serialize_project(project)}, "Team member added successfully")

    @router.delete("/{project_id}/team-members/{user_id}")
    async def remove_team_member(
        project_id: str,
        user_id: str,
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        project = ProjectService.remove_team_member(db, current_user, project_id, user_id)
        return success_response({"project": serialize_project(project)}, "Team member removed successfully")

    return router
