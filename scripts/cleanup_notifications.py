"""Delete read notifications older than the configured retention period."""

from __future__ import annotations

import argparse
import logging

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import cleanup_old_notifications
from app.config import get_settings
from app.infrastructure.database import SessionLocal, initialize_database
from app.infrastructure.logging_config import configure_logging

logger = logging.getLogger("scripts.cleanup_notifications")


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--days",
        type=int,
        default=settings.notification_retention_days,
        help=(
            "Delete read notifications created more than this many days ago "
            f"(default: {settings.notification_retention_days})"
        ),
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(get_settings().log_level)
    if args.days <= 0:
        raise SystemExit("--days must be a positive number")

    initialize_database()
    session = SessionLocal()
    try:
        deleted = cleanup_old_notifications(session, days_old=args.days)
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Database error during cleanup: {exc}") from exc
    finally:
        session.close()
    logger.info("Cleanup finished, %d notifications deleted", deleted)


if __name__ == "__main__":
    main()
