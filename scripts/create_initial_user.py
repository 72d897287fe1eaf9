"""Utility script to create an initial administrator in the database."""

from __future__ import annotations

import argparse
from getpass import getpass

from sqlalchemy.exc import SQLAlchemyError

from moodlog.application.use_cases.users import register_user
from moodlog.domain.entities import UserRole
from moodlog.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for user creation."""

    parser = argparse.ArgumentParser(
        description="Create an initial administrator for the moodlog API.",
    )
    parser.add_argument(
        "--username",
        default="admin",
        help="Username of the account (default: admin)",
    )
    parser.add_argument(
        "--email",
        default="admin@example.com",
        help="Email address of the account (default: admin@example.com)",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Password of the account. Prompted interactively when omitted.",
    )
    parser.add_argument(
        "--regular",
        action="store_true",
        help="Create a regular user instead of an administrator.",
    )
    return parser.parse_args()


def main() -> None:
    """Create a user using the provided command line arguments."""

    args = parse_args()

    password = args.password or getpass("Password for the new account: ")
    if not password:
        raise SystemExit("No password provided.")

    initialize_database()

    session = SessionLocal()
    try:
        user = register_user(
            session,
            username=args.username,
            email=args.email,
            password=password,
            role=UserRole.USER if args.regular else UserRole.ADMIN,
        )
    except ValueError as exc:
        session.rollback()
        raise SystemExit(f"Could not create the user: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not store the user in the database: {exc}") from exc
    else:
        print(
            "User created:\n"
            f"  ID: {user.id}\n"
            f"  Username: {user.username}\n"
            f"  Email: {user.email}\n"
            f"  Role: {user.role.value}"
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
