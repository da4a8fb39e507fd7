"""Uniform response envelope for every endpoint."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi.responses import JSONResponse


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


def success_response(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "message": message,
            "statusCode": status_code,
            "data": data,
            "timestamp": _timestamp(),
        },
    )


def error_response(
    message: str,
    status_code: int = 500,
    errors: Optional[List[Dict[str, Any]]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "statusCode": status_code,
            "errors": errors,
            "timestamp": _timestamp(),
        },
    )
