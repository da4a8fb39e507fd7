"""Service layer for user administration."""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_

from visiondesk.c1_database_session import generate_id
from visiondesk.c1_role_enums import UserRole
from visiondesk.c1_user_models.user import User
from visiondesk.c2_access_policy import access_policy
from visiondesk.c2_auth_service.passwords import hash_password
from visiondesk.c2_auth_service.refresh_token_store import RefreshTokenStore
from visiondesk.core.config import AuthConfig, get_settings
from visiondesk.core.errors import AuthorizationError, NotFoundError, ValidationError
from visiondesk.core.pagination import get_pagination_data, get_skip_value, normalize_page

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing user accounts."""

    @staticmethod
    def _get(db, user_id: str) -> User:
        user = db.query(User).filter_by(id=user_id).first()
        if user is None:
            raise NotFoundError.for_entity("User")
        return user

    @staticmethod
    def _check_role(role: str) -> str:
        valid = [r.value for r in UserRole]
        if role not in valid:
            raise ValidationError(
                f"Invalid role: {role}",
                errors=[{"field": "role", "message": f"Role must be one of {', '.join(valid)}"}],
            )
        return role

    @staticmethod
    def list_users(
        db,
        search: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[User], Dict[str, Any]]:
        """List users, newest first."""
        page, limit = normalize_page(page, limit)
        query = db.query(User)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)

        total = query.count()
        users = (
            query.order_by(User.created_at.desc())
            .offset(get_skip_value(page, limit))
            .limit(limit)
            .all()
        )
        return users, get_pagination_data(page, limit, total)

    @staticmethod
    def get_user_stats(db, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        total = db.query(func.count(User.id)).scalar() or 0
        active = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0
        by_role = {role.value: 0 for role in UserRole}
        for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all():
            by_role[role] = count
        recent = (
            db.query(func.count(User.id))
            .filter(User.created_at >= now - timedelta(days=30))
            .scalar()
            or 0
        )
        return {
            "totalUsers": total,
            "activeUsers": active,
            "inactiveUsers": total - active,
            "byRole": by_role,
            "recentUsers": recent,
        }

    @staticmethod
    def get_user(db, actor: User, user_id: str) -> User:
        user = UserService._get(db, user_id)
        access_policy.ensure(access_policy.can_view_user(actor, user), "You can only view your own profile")
        return user

    @staticmethod
    def create_user(
        db,
        actor: User,
        name: str,
        email: str,
        password: str,
        role: str = UserRole.USER.value,
        is_active: bool = True,
        config: Optional[AuthConfig] = None,
    ) -> User:
        """Create an account on behalf of an administrator."""
        config = config or get_settings().auth
        access_policy.ensure(access_policy.is_admin(actor), "Only administrators can create users")
        UserService._check_role(role)
        email = email.strip().lower()
        if len(password or "") < config.min_password_length:
            raise ValidationError(f"Password must be at least {config.min_password_length} characters long")
        if db.query(User).filter_by(email=email).first():
            raise ValidationError(
                "User already exists with this email",
                errors=[{"field": "email", "message": "Email is already registered"}],
            )

        user = User(
            id=generate_id("user"),
            name=name.strip(),
            email=email,
            password_hash=hash_password(password, rounds=config.bcrypt_rounds),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.flush()
        logger.info(f"User {user.id} ({email}, {role}) created by {actor.id}")
        return user

    @staticmethod
    def update_user(db, actor: User, user_id: str, updates: Dict[str, Any]) -> User:
        """Apply profile updates; role and activation changes are admin-only."""
        user = UserService._get(db, user_id)
        access_policy.ensure(access_policy.can_edit_user(actor, user), "You can only update your own profile")

        if ("role" in updates or "is_active" in updates) and not access_policy.is_admin(actor):
            raise AuthorizationError("Only administrators can change role or account status")
        if user.id == actor.id:
            role = updates.get("role")
            if role is not None and getattr(role, "value", role) != user.role:
                raise ValidationError("You cannot change your own role")
            if updates.get("is_active") is False:
                raise ValidationError("You cannot deactivate your own account")

        if "email" in updates and updates["email"] is not None:
            email = updates["email"].strip().lower()
            if email != user.email:
                if db.query(User).filter(User.email == email, User.id != user.id).first():
                    raise ValidationError(
                        "Email is already in use",
                        errors=[{"field": "email", "message": "Email is already registered"}],
                    )
                user.email = email
        if updates.get("name") is not None:
            user.name = updates["name"].strip()
        if "profile_image" in updates:
            user.profile_image = updates["profile_image"]
        if updates.get("role") is not None:
            user.role = UserService._check_role(updates["role"])
        if updates.get("is_active") is not None:
            user.is_active = bool(updates["is_active"])
            if not user.is_active:
                RefreshTokenStore.revoke_all_for_user(db, user.id)

        db.flush()
        logger.info(f"User {user.id} updated by {actor.id}: {sorted(updates)}")
        return user

    @staticmethod
    def delete_user(db, actor: User, user_id: str) -> User:
        """Deactivate an account; rows are kept for history."""
        access_policy.ensure(access_policy.is_admin(actor), "Only administrators can delete users")
        user = UserService._get(db, user_id)
        if user.id == actor.id:
            raise ValidationError("You cannot delete your own account")

        user.is_active = False
        RefreshTokenStore.revoke_all_for_user(db, user.id)
        db.flush()
        logger.info(f"User {user.id} deactivated by {actor.id}")
        return user

    @staticmethod
    def assign_role(db, actor: User, user_id: str, role: str) -> User:
        access_policy.ensure(access_policy.can_change_role(actor), "Only administrators can assign roles")
        UserService._check_role(role)
        user = UserService._get(db, user_id)
        if user.id == actor.id and role != user.role:
            raise ValidationError("You cannot change your own role")

        old_role = user.role
        user.role = role
        db.flush()
        logger.info(f"User {user.id} role changed {old_role} -> {role} by {actor.id}")
        return user

    @staticmethod
    def ensure_initial_admin(db, config: Optional[AuthConfig] = None) -> Optional[User]:
        """Seed the configured admin account when no admin exists yet."""
        config = config or get_settings().auth
        if not config.initial_admin_email or config.initial_admin_password is None:
            return None
        if db.query(User).filter_by(role=UserRole.ADMIN.value).first():
            return None

        email = config.initial_admin_email.strip().lower()
        user = db.query(User).filter_by(email=email).first()
        if user is not None:
            user.role = UserRole.ADMIN.value
            user.is_active = True
            logger.info(f"Promoted existing user {user.id} to admin")
            return user

        user = User(
            id=generate_id("user"),
            name=config.initial_admin_name,
            email=email,
            password_hash=hash_password(
                config.initial_admin_password.get_secret_value(), rounds=config.bcrypt_rounds
            ),
            role=UserRole.ADMIN.value,
            is_active=True,
        )
        db.add(user)
        db.flush()
        logger.info(f"Seeded initial admin account {email}")
        return user
