"""Create tables and optionally seed the first admin for local development.

Production databases are managed with Alembic (``alembic upgrade head``).
"""
from __future__ import annotations

import argparse
import logging
import sys

from queryloop.core.logging import configure_logging
from queryloop.core.security import create_access_token
from queryloop.db.session import SessionLocal, create_tables
from queryloop.exceptions import QueryLoopError
from queryloop.models import User
from queryloop.services.identity import IdentityDirectory
from queryloop.services.users import UserService

logger = logging.getLogger(__name__)


def bootstrap_admin(email: str, username: str) -> str:
    """Create an identity with an admin profile and return a bearer token for it."""
    with SessionLocal() as db:
        identity = IdentityDirectory(db).register(email)
        record = UserService(db).create_profile(identity.id, identity.email, username)
        user = db.get(User, record.id)
        user.is_admin = True
        db.commit()
        logger.info("Admin %s created", username)
        return create_access_token(record.id)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the QueryLoop database.")
    parser.add_argument("--admin-email", help="Email of an admin account to create")
    parser.add_argument("--admin-username", help="Username of that admin account")
    args = parser.parse_args(argv)

    configure_logging()
    create_tables()
    logger.info("Database tables created")

    if args.admin_email or args.admin_username:
        if not (args.admin_email and args.admin_username):
            parser.error("--admin-email and --admin-username go together")
        try:
            token = bootstrap_admin(args.admin_email, args.admin_username)
        except QueryLoopError as err:
            logger.error("Could not create admin: %s", err.message)
            return 1
        print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
