"""Analytics routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from visiondesk.c1_role_enums import UserRole
from visiondesk.c1_user_models.user import User
from visiondesk.c2_analytics_service.analytics_service import AnalyticsService
from visiondesk.c3_route_dependencies import (
    get_current_user,
    get_db_session,
    get_settings_dep,
    require_roles,
    success_response,
)
from visiondesk.core.config import Settings

logger = logging.getLogger(__name__)


def create_analytics_router():
    """Create the analytics router.

    Returns:
        APIRouter: Router with /api/analytics endpoints
    """
    router = APIRouter(prefix="/api/analytics", tags=["analytics"])

    @router.get("/dashboard")
    async def dashboard(
        time_frame: Optional[str] = Query(None, alias="timeFrame"),
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
        settings: Settings = Depends(get_settings_dep),
    ):
        data = AnalyticsService.dashboard(
            db,
            current_user,
            time_frame,
            leaderboard_size=settings.analytics.leaderboard_size,
            recent_activity_limit=settings.analytics.recent_activity_limit,
            default_time_frame=settings.analytics.default_time_frame,
        )
        return success_response(data, "Dashboard analytics retrieved successfully")

    @router.get("/project-completion")
    async def project_completion(
        days: int = Query(30),
        current_user: User = Depends(get_current_user),
        db=Depends(get_db_session),
    ):
        trend = AnalyticsService.project_completion_trend(db, current_user, days)
        return success_response({"days": days, "trend": trend}, "Project completion trend retrieved successfully")

    @router.get("/team-performance")
    async def team_performance(
        time_frame: Optional[str] = Query(None, alias="timeFrame"),
        project_id: Optional[str] = Query(None, alias="projectId"),
        current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.MODERATOR)),
        db=Depends(get_db_session),
        settings: Settings = Depends(get_settings_dep),
    ):
        performance = AnalyticsService.team_performance(
            db,
            current_user,
            time_frame,
            project_id=project_id,
            default_time_frame=settings.analytics.default_time_frame,
        )
        return success_response({"teamPerformance": performance}, "Team performance retrieved successfully")

    return router
