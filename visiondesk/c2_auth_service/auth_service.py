"""Service layer for registration, login and token lifecycle."""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from visiondesk.c1_database_session import generate_id
from visiondesk.c1_role_enums import UserRole
from visiondesk.c1_user_models.user import User
from visiondesk.c2_auth_service.passwords import hash_password, verify_password
from visiondesk.c2_auth_service.refresh_token_store import RefreshTokenStore
from visiondesk.c2_auth_service.tokens import (
    create_access_token,
    create_token_pair,
    verify_access_token,
    verify_refresh_token,
)
from visiondesk.core.config import AuthConfig, get_settings
from visiondesk.core.errors import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def _config(config: Optional[AuthConfig]) -> AuthConfig:
        return config or get_settings().auth

    @staticmethod
    def _check_password_length(password: str, config: AuthConfig):
        if len(password or "") < config.min_password_length:
            raise ValidationError(
                f"Password must be at least {config.min_password_length} characters long",
                errors=[{"field": "password", "message": "Password is too short"}],
            )

    @staticmethod
    def issue_tokens(db, user: User, config: Optional[AuthConfig] = None) -> Dict[str, Any]:
        """Create a token pair for ``user`` and remember the refresh token."""
        config = AuthService._config(config)
        tokens = create_token_pair(user.id, user.email, user.role, config=config)
        RefreshTokenStore.store(
            db,
            user.id,
            tokens["refresh_token"],
            datetime.utcnow() + timedelta(days=config.refresh_token_expire_days),
        )
        return tokens

    @staticmethod
    def register(db, name: str, email: str, password: str, config: Optional[AuthConfig] = None) -> Tuple[User, Dict[str, Any]]:
        """Create a new account with role ``user`` and sign it in."""
        config = AuthService._config(config)
        email = email.strip().lower()
        AuthService._check_password_length(password, config)

        if db.query(User).filter_by(email=email).first():
            logger.warning(f"Registration rejected for existing email {email}")
            raise ValidationError(
                "User already exists with this email",
                errors=[{"field": "email", "message": "Email is already registered"}],
            )

        user = User(
            id=generate_id("user"),
            name=name.strip(),
            email=email,
            password_hash=hash_password(password, rounds=config.bcrypt_rounds),
            role=UserRole.USER.value,
            is_active=True,
            last_login=datetime.utcnow(),
        )
        db.add(user)
        db.flush()

        tokens = AuthService.issue_tokens(db, user, config)
        logger.info(f"Registered user {user.id} ({email})")
        return user, tokens

    @staticmethod
    def login(db, email: str, password: str, config: Optional[AuthConfig] = None) -> Tuple[User, Dict[str, Any]]:
        """Check credentials, stamp the login time and issue tokens."""
        config = AuthService._config(config)
        user = db.query(User).filter_by(email=(email or "").strip().lower()).first()

        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            logger.warning(f"Login attempt on deactivated account {user.id}")
            raise AuthenticationError("Account is deactivated. Please contact an administrator")

        user.last_login = datetime.utcnow()
        tokens = AuthService.issue_tokens(db, user, config)
        logger.info(f"User {user.id} logged in")
        return user, tokens

    @staticmethod
    def refresh(db, refresh_token: str, config: Optional[AuthConfig] = None) -> Dict[str, Any]:
        """Exchange a stored refresh token for a new access token."""
        config = AuthService._config(config)
        if not refresh_token:
            raise AuthenticationError("Refresh token is required")

        payload = verify_refresh_token(refresh_token, config=config)
        record = RefreshTokenStore.find_usable(db, refresh_token) if payload else None
        if record is None:
            raise AuthenticationError("Invalid refresh token")

        user = db.query(User).filter_by(id=payload.get("sub")).first()
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid refresh token")

        record.last_used_at = datetime.utcnow()

        access_token = create_access_token(
            {"sub": user.id, "email": user.email, "role": user.role},
            config=config,
        )
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": config.access_token_expire_minutes * 60,
        }

    @staticmethod
    def logout(db, refresh_token: Optional[str]) -> bool:
        """Revoke the presented refresh token; unknown tokens are ignored."""
        if not refresh_token:
            return False
        revoked = RefreshTokenStore.revoke(db, refresh_token)
        logger.info(f"Logout processed (token revoked: {revoked})")
        return revoked

    @staticmethod
    def authenticate(db, access_token: str, config: Optional[AuthConfig] = None) -> User:
        """Resolve the user behind an access token."""
        payload = verify_access_token(access_token, config=AuthService._config(config))
        if payload is None:
            raise AuthenticationError("Invalid or expired token")

        user = db.query(User).filter_by(id=payload.get("sub")).first()
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid token or user is not active")
        return user

    @staticmethod
    def update_profile(
        db,
        user: User,
        name: Optional[str] = None,
        email: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> User:
        if email is not None:
            email = email.strip().lower()
            if email != user.email:
                existing = db.query(User).filter(User.email == email, User.id != user.id).first()
                if existing:
                    raise ValidationError(
                        "Email is already in use",
                        errors=[{"field": "email", "message": "Email is already registered"}],
                    )
                user.email = email
        if name is not None:
            user.name = name.strip()
        if profile_image is not None:
            user.profile_image = profile_image
        db.flush()
        logger.info(f"Profile updated for user {user.id}")
        return user

    @staticmethod
    def change_password(
        db,
        user: User,
        current_password: str,
        new_password: str,
        config: Optional[AuthConfig] = None,
    ) -> None:
        """Replace the password and revoke every outstanding refresh token."""
        config = AuthService._config(config)
        if not verify_password(current_password, user.password_hash):
            raise ValidationError(
                "Current password is incorrect",
                errors=[{"field": "currentPassword", "message": "Current password is incorrect"}],
            )
        AuthService._check_password_length(new_password, config)

        user.password_hash = hash_password(new_password, rounds=config.bcrypt_rounds)
        RefreshTokenStore.revoke_all_for_user(db, user.id)
        logger.info(f"Password changed for user {user.id}")
