"""Health check routes for the VisionDesk API."""

from datetime import datetime
from fastapi import APIRouter

from visiondesk import __version__
from visiondesk.c3_route_dependencies import success_response

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Health check endpoint.

    Returns:
        JSONResponse: Envelope carrying health status, timestamp, and version
    """
    return success_response(
        {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "version": __version__,
        },
        "Service is healthy",
    )
