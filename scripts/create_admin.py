#!/usr/bin/env python3
"""Create an admin account, or promote an existing account to admin.

Usage example:

  python scripts/create_admin.py --email admin@example.com --name "Site Admin"

The password is read from --password or prompted for. The database URL comes
from --database-url, then DATABASE_URL, then the default SQLite file.
"""

import argparse
import getpass
import sys

from visiondesk.c1_database_session import DatabaseManager, generate_id
from visiondesk.c1_role_enums import UserRole
from visiondesk.c1_user_models.user import User
from visiondesk.c2_auth_service.passwords import hash_password
from visiondesk.core.config import get_settings


def create_admin(database_url: str, email: str, name: str, password: str) -> User:
    """Create or promote ``email`` to admin and return the account."""
    db_manager = DatabaseManager(database_url)
    db_manager.create_tables()
    email = email.strip().lower()

    with db_manager.session_scope() as db:
        user = db.query(User).filter_by(email=email).first()
        if user is None:
            user = User(
                id=generate_id("user"),
                name=name,
                email=email,
                password_hash=hash_password(password),
                role=UserRole.ADMIN.value,
                is_active=True,
            )
            db.add(user)
            print(f"✅ Created admin {email}")
        else:
            user.role = UserRole.ADMIN.value
            user.is_active = True
            if password:
                user.password_hash = hash_password(password)
            print(f"✅ Promoted {email} to admin")
        db.flush()
        db.expunge(user)
    return user


def main():
    parser = argparse.ArgumentParser(description="Create or promote a VisionDesk admin account")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--name", default="Administrator", help="Display name for a new account")
    parser.add_argument("--password", help="Password (prompted when omitted)")
    parser.add_argument("--database-url", help="SQLAlchemy database URL")
    args = parser.parse_args()

    settings = get_settings()
    password = args.password or getpass.getpass("Password: ")
    if len(password) < settings.auth.min_password_length:
        print(f"❌ Password must be at least {settings.auth.min_password_length} characters")
        return 1

    create_admin(args.database_url or settings.database.url, args.email, args.name, password)
    return 0


if __name__ == "__main__":
    sys.exit(main())
