"""Persistent store of issued refresh tokens."""

import logging
from datetime import datetime
from typing import Optional

from visiondesk.c1_database_session import generate_id
from visiondesk.c1_user_models.user import RefreshToken
from visiondesk.c2_auth_service.tokens import hash_token

logger = logging.getLogger(__name__)


class RefreshTokenStore:
    """Tracks refresh tokens by hash so they can be revoked."""

    @staticmethod
    def store(db, user_id: str, token: str, expires_at: datetime) -> RefreshToken:
        record = RefreshToken(
            id=generate_id("rt"),
            user_id=user_id,
            token_hash=hash_token(token),
            expires_at=expires_at,
        )
        db.add(record)
        db.flush()
        return record

    @staticmethod
    def find_usable(db, token: str, now: Optional[datetime] = None) -> Optional[RefreshToken]:
        """Return the stored token if it exists, is not revoked and has not expired."""
        record = db.query(RefreshToken).filter_by(token_hash=hash_token(token)).first()
        if record is None or not record.is_usable(now):
            return None
        return record

    @staticmethod
    def revoke(db, token: str) -> bool:
        record = db.query(RefreshToken).filter_by(token_hash=hash_token(token)).first()
        if record is None or record.revoked_at is not None:
            return False
        record.revoked_at = datetime.utcnow()
        return True

    @staticmethod
    def revoke_all_for_user(db, user_id: str) -> int:
        now = datetime.utcnow()
        count = (
            db.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
            .update({RefreshToken.revoked_at: now}, synchronize_session=False)
        )
        if count:
            logger.info(f"Revoked {count} refresh tokens for user {user_id}")
        return count

    @staticmethod
    def purge_expired(db, now: Optional[datetime] = None) -> int:
        """Delete tokens that can never be used again."""
        now = now or datetime.utcnow()
        count = (
            db.query(RefreshToken)
            .filter((RefreshToken.expires_at <= now) | RefreshToken.revoked_at.isnot(None))
            .delete(synchronize_session=False)
        )
        if count:
            logger.info(f"Purged {count} expired or revoked refresh tokens")
        return count
