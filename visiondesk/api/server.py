"""FastAPI application factory and entry point for the VisionDesk API."""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from visiondesk import __version__
from visiondesk.c1_database_session import DatabaseManager
from visiondesk.c2_auth_service.refresh_token_store import RefreshTokenStore
from visiondesk.c2_user_service.user_service import UserService
from visiondesk.c3_analytics_routes import create_analytics_router
from visiondesk.c3_auth_routes import create_auth_router
from visiondesk.c3_health_routes import router as health_router
from visiondesk.c3_project_routes import create_project_router
from visiondesk.c3_route_dependencies import error_response
from visiondesk.c3_task_routes import create_task_router
from visiondesk.c3_ticket_routes import create_ticket_router
from visiondesk.c3_user_routes import create_user_router
from visiondesk.core.config import Settings, get_settings
from visiondesk.core.errors import ServerError, VisionDeskError

logger = logging.getLogger(__name__)


class ServerState:
    """Objects shared by every request: settings and the database."""

    def __init__(self, settings: Settings, db_manager: Optional[DatabaseManager] = None):
        self.settings = settings
        self.db_manager = db_manager

    def initialize(self):
        """Create tables, seed the initial admin and drop dead refresh tokens."""
        if self.db_manager is None:
            self.db_manager = DatabaseManager(self.settings.database.url, echo=self.settings.database.echo)
        self.db_manager.create_tables()

        with self.db_manager.session_scope() as db:
            UserService.ensure_initial_admin(db, self.settings.auth)
            RefreshTokenStore.purge_expired(db)


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def register_exception_handlers(app: FastAPI, settings: Settings):
    """Map every error onto the failure envelope."""

    @app.exception_handler(VisionDeskError)
    async def visiondesk_error_handler(request: Request, exc: VisionDeskError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return error_response(exc.message, exc.status_code, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [{"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")} for err in exc.errors()]
        logger.warning(f"{request.method} {request.url.path} -> 400: {len(errors)} validation error(s)")
        return error_response("Validation failed", 400, errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(str(exc.detail), exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
        error = ServerError(errors=[{"message": f"{type(exc).__name__}: {exc}"}] if settings.expose_errors else None)
        return error_response(error.message, error.status_code, error.errors)


def create_app(settings: Optional[Settings] = None, db_manager: Optional[DatabaseManager] = None) -> FastAPI:
    """Build the API application.

    Args:
        settings: Settings to use; the global settings when omitted
        db_manager: Pre-built database manager, e.g. an in-memory one in tests

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()
    server_state = ServerState(settings, db_manager)
    server_state.initialize()

    app = FastAPI(
        title="VisionDesk API",
        description="Role-based project, task and ticket management",
        version=__version__,
    )
    app.state.server_state = server_state

    if settings.server.enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.server.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app, settings)

    app.include_router(health_router)
    app.include_router(create_auth_router())
    app.include_router(create_user_router())
    app.include_router(create_project_router())
    app.include_router(create_task_router())
    app.include_router(create_ticket_router())
    app.include_router(create_analytics_router())

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down VisionDesk API...")
        server_state.db_manager.engine.dispose()

    logger.info(f"VisionDesk API ready ({settings.environment}, database {server_state.db_manager.engine.url!r})")
    return app


def main():
    """Run the API with uvicorn."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app = create_app(settings)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
