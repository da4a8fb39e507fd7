"""Domain error taxonomy for VisionDesk.

Services raise these exceptions; the API layer turns them into the failure
envelope with the matching HTTP status code.
"""

from typing import Any, Dict, List, Optional


class VisionDeskError(Exception):
    """Base class for all errors that map to an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(VisionDeskError):
    """Malformed or out-of-range input."""

    status_code = 400
    default_message = "Validation failed"


class InvalidStateTransition(VisionDeskError):
    """A lifecycle precondition does not hold for the current record state."""

    status_code = 400
    default_message = "Invalid state transition"


class AuthenticationError(VisionDeskError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(VisionDeskError):
    """The caller lacks the role or relationship required."""

    status_code = 403
    default_message = "Access denied"


class NotFoundError(VisionDeskError):
    """The requested record does not exist."""

    status_code = 404
    default_message = "Resource not found"

    @classmethod
    def for_entity(cls, entity: str) -> "NotFoundError":
        return cls(f"{entity} not found")


class ServerError(VisionDeskError):
    """Unexpected failure."""

    status_code = 500
    default_message = "Internal server error"
