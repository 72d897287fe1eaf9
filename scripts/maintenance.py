"""Maintenance commands: sweep sessions, resume alerts and verify chains."""

from __future__ import annotations

import argparse
import logging

from moodlog.application.use_cases.events import EventLog
from moodlog.application.use_cases.notifications import NotificationDispatcher
from moodlog.application.use_cases.sessions import SessionManager
from moodlog.config import get_settings
from moodlog.domain.errors import MoodlogError
from moodlog.infrastructure.database import (
    SessionLocal,
    initialize_database,
    session_scope,
)
from moodlog.infrastructure.repositories import UserRepository

logger = logging.getLogger("moodlog.maintenance")


def sweep_sessions(_: argparse.Namespace) -> int:
    removed = SessionManager(SessionLocal).sweep_expired()
    print(f"Removed {removed} expired session(s)")
    return 0


def resume_notifications(args: argparse.Namespace) -> int:
    """Dispatch every alert that has not been delivered yet."""

    dispatcher = NotificationDispatcher(SessionLocal)
    user_ids = args.user or _all_user_ids()
    failures = 0
    for user_id in user_ids:
        try:
            outcomes = dispatcher.resume(user_id)
        except MoodlogError as exc:
            logger.error("Resuming alerts for user %s failed: %s", user_id, exc)
            failures += 1
            continue
        for outcome in outcomes:
            print(
                f"user {user_id} event {outcome.event_sequence}: "
                f"{outcome.status.value} after {outcome.attempts} attempt(s)"
            )
            if not outcome.delivered:
                failures += 1
    return 1 if failures else 0


def verify_chains(args: argparse.Namespace) -> int:
    event_log = EventLog(SessionLocal)
    user_ids = args.user or event_log.user_ids()
    broken = 0
    for user_id in user_ids:
        result = event_log.chain_report(user_id)
        if result.valid:
            print(f"user {user_id}: ok ({result.checked} event(s))")
        else:
            broken += 1
            print(
                f"user {user_id}: BROKEN at sequence {result.first_broken_sequence}: "
                + "; ".join(result.problems)
            )
    return 1 if broken else 0


def _all_user_ids() -> list[int]:
    with session_scope() as db:
        return UserRepository(db).list_ids()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="moodlog maintenance commands.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sweep = subparsers.add_parser("sweep-sessions", help="Delete expired or idle sessions.")
    sweep.set_defaults(handler=sweep_sessions)

    resume = subparsers.add_parser(
        "resume-notifications", help="Retry alerts that were never delivered."
    )
    resume.add_argument("--user", type=int, action="append", help="Limit to a user id.")
    resume.set_defaults(handler=resume_notifications)

    verify = subparsers.add_parser("verify-chains", help="Recompute event chain markers.")
    verify.add_argument("--user", type=int, action="append", help="Limit to a user id.")
    verify.set_defaults(handler=verify_chains)

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=get_settings().log_level.upper())
    initialize_database()
    raise SystemExit(args.handler(args))


if __name__ == "__main__":
    main()
