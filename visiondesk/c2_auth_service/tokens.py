"""JWT helpers for access and refresh tokens."""

import uuid
import hashlib
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from visiondesk.core.config import AuthConfig, get_settings

logger = logging.getLogger(__name__)


def _auth_config(config: Optional[AuthConfig]) -> AuthConfig:
    return config or get_settings().auth


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    config: Optional[AuthConfig] = None,
) -> str:
    """Create a signed access token carrying ``data`` as claims."""
    config = _auth_config(config)
    expires_delta = expires_delta or timedelta(minutes=config.access_token_expire_minutes)
    claims = dict(data)
    claims.update({
        "type": "access",
        "iat": datetime.utcnow(),
        "exp": datetime.utcnow() + expires_delta,
    })
    return jwt.encode(claims, config.jwt_secret.get_secret_value(), algorithm=config.algorithm)


def create_refresh_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    config: Optional[AuthConfig] = None,
) -> str:
    """Create a refresh token signed with the refresh secret.

    Every refresh token carries a unique ``jti`` so two tokens issued in the
    same second still hash differently in the token store.
    """
    config = _auth_config(config)
    expires_delta = expires_delta or timedelta(days=config.refresh_token_expire_days)
    claims = dict(data)
    claims.update({
        "type": "refresh",
        "jti": str(uuid.uuid4()),
        "iat": datetime.utcnow(),
        "exp": datetime.utcnow() + expires_delta,
    })
    return jwt.encode(claims, config.jwt_refresh_secret.get_secret_value(), algorithm=config.algorithm)


def _decode(token: str, secret: str, algorithm: str, expected_type: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as e:
        logger.debug(f"Rejected {expected_type} token: {e}")
        return None
    if payload.get("type") != expected_type:
        logger.debug(f"Rejected token with type {payload.get('type')!r}, expected {expected_type!r}")
        return None
    return payload


def verify_access_token(token: str, config: Optional[AuthConfig] = None) -> Optional[Dict[str, Any]]:
    """Return the access token payload, or None if it is invalid or expired."""
    config = _auth_config(config)
    return _decode(token, config.jwt_secret.get_secret_value(), config.algorithm, "access")


def verify_refresh_token(token: str, config: Optional[AuthConfig] = None) -> Optional[Dict[str, Any]]:
    """Return the refresh token payload, or None if it is invalid or expired."""
    config = _auth_config(config)
    return _decode(token, config.jwt_refresh_secret.get_secret_value(), config.algorithm, "refresh")


def create_token_pair(user_id: str, email: str, role: str, config: Optional[AuthConfig] = None) -> Dict[str, Any]:
    """Issue an access and a refresh token for one user."""
    config = _auth_config(config)
    claims = {"sub": user_id, "email": email, "role": role}
    return {
        "access_token": create_access_token(claims, config=config),
        "refresh_token": create_refresh_token({"sub": user_id, "email": email}, config=config),
        "token_type": "bearer",
        "expires_in": config.access_token_expire_minutes * 60,
    }


def hash_token(token: str) -> str:
    """Hash a token for storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
