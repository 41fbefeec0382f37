# src/marketdesk/create_admin.py
"""
Create an ADMIN user, or promote an existing one and reset its password.

    python -m marketdesk.create_admin --email admin@example.com --password '...'

`ADMIN_EMAIL` / `ADMIN_PASSWORD` are used when the flags are omitted.
"""
import argparse
import os
import sys
from typing import Optional, Tuple

from marketdesk.domain.entities import UserRole
from marketdesk.domain.errors import DomainError
from marketdesk.infrastructure.db.models import User
from marketdesk.infrastructure.db.repository import UserRepository
from marketdesk.infrastructure.db.uow import SessionScope, create_tables, session_scope as default_session_scope
from marketdesk.interfaces.api.security.auth import hash_password


def ensure_admin(email: str, password: str, session_scope: Optional[SessionScope] = None) -> Tuple[User, bool]:
    """Returns (user, created)."""
    scope = session_scope or default_session_scope
    with scope() as session:
        users = UserRepository(session)
        user = users.find_by_email(email)
        if user:
            user.role = UserRole.ADMIN
            user.password_hash = hash_password(password)
            user.is_active = True
            session.flush()
            return user, False
        return users.add(email=email, password_hash=hash_password(password), role=UserRole.ADMIN), True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--create-tables", action="store_true", help="create missing tables first")
    args = parser.parse_args(argv)

    if not args.email or not args.password:
        print("⚠️ --email and --password (or ADMIN_EMAIL / ADMIN_PASSWORD) are required")
        return 2

    if args.create_tables:
        create_tables()

    try:
        user, created = ensure_admin(args.email, args.password)
    except DomainError as e:
        print(f"❌ Error creating admin user: {e.code} {e.message}")
        return 1

    print(f"✅ Admin user {'created' if created else 'updated'}: {user.email} (id={user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
