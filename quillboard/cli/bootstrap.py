"""CLI entry point for bootstrapping the first super-admin.

Creates the tables if needed, creates (or upgrades) a user to super-admin and
prints an access token for calling the admin API.

Usage:
    python -m quillboard.cli.bootstrap --username alice --fullname "Alice A" --email a@x.io

Exit Codes:
    0 - Success: token printed to stdout
    1 - Failure: error logged; nothing committed
"""

import argparse
import logging
import sys

from dotenv import load_dotenv
from sqlalchemy import select

from quillboard.logging import setup_server_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or promote a super admin")
    parser.add_argument("--username", required=True)
    parser.add_argument("--fullname", required=True)
    parser.add_argument("--email", default=None)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Orchestrates the bootstrap:
    1. Load .env and set up logging
    2. Ensure the schema exists
    3. Upsert the user with is_admin and is_super_admin set
    4. Print an access token

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = parse_args(argv)
    load_dotenv()

    setup_server_logging()

    from quillboard.database import Base, SessionLocal, engine
    from quillboard.models.user import User
    from quillboard.services.auth_service import create_access_token

    db = SessionLocal()
    try:
        Base.metadata.create_all(bind=engine)

        user = db.execute(select(User).where(User.username == args.username)).scalar_one_or_none()
        if user is None:
            user = User(username=args.username, fullname=args.fullname, email=args.email)
            db.add(user)
            logger.info("Creating super admin %s", args.username)
        else:
            logger.info("Promoting existing user %s to super admin", args.username)
        user.is_admin = True
        user.is_super_admin = True
        user.is_verified = True
        db.commit()
        db.refresh(user)

        print(create_access_token(user.id))
        return 0
    except Exception as e:
        db.rollback()
        logger.error("Bootstrap failed: %s", e, exc_info=True)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
