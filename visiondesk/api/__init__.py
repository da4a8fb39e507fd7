"""HTTP application for VisionDesk."""

from visiondesk.api.server import ServerState, create_app

__all__ = ["ServerState", "create_app"]
