"""Use cases to create, list and acknowledge notifications."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from app.domain.entities import Notification
from app.infrastructure.notifications import NotificationBroadcaster
from app.infrastructure.repositories import NotificationRepository
from app.utils import now_in_app_timezone

from .realtime import broadcast_new_notification, broadcast_unread_count

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def create_notification(
    session: Session,
    *,
    user_id: int,
    actor_id: int,
    event_type: str,
    title: str,
    message: str,
    ticket_id: str | None = None,
    ticket_number: str | None = None,
    ticket_subject: str | None = None,
    comment_id: str | None = None,
    payload: dict[str, Any] | None = None,
    allow_self: bool = False,
    broadcaster: NotificationBroadcaster | None = None,
) -> Notification | None:
    """Persist a notification for ``user_id`` and push it in real time.

    Users are not notified about their own actions: when ``user_id`` equals
    ``actor_id`` nothing is stored and ``None`` is returned, unless
    ``allow_self`` is set.
    """

    if user_id == actor_id and not allow_self:
        logger.debug("Skipping %s notification for self action of user %s", event_type, user_id)
        return None

    notification = Notification(
        id=None,
        user_id=user_id,
        actor_id=actor_id,
        event_type=event_type,
        title=title,
        message=message,
        ticket_id=ticket_id,
        ticket_number=ticket_number,
        ticket_subject=ticket_subject,
        comment_id=comment_id,
        payload=payload or {},
        created_at=now_in_app_timezone(),
        read_at=None,
    )
    saved = NotificationRepository(session).create(notification)
    logger.info("Created %s notification %s for user %s", event_type, saved.id, user_id)
    broadcast_new_notification(session, saved, broadcaster=broadcaster)
    return saved


def list_notifications(
    session: Session,
    user_id: int,
    *,
    unread_only: bool = False,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> Sequence[Notification]:
    """Return the most recent notifications of ``user_id``, newest first."""

    return NotificationRepository(session).list_for_user(
        user_id, unread_only=unread_only, limit=limit, offset=offset
    )


def get_unread_count(session: Session, user_id: int) -> int:
    return NotificationRepository(session).count_unread(user_id)


def mark_notification_as_read(
    session: Session,
    notification_id: int,
    user_id: int,
    *,
    broadcaster: NotificationBroadcaster | None = None,
) -> bool:
    """Mark one notification of ``user_id`` as read.

    Returns ``False`` when the notification does not exist or belongs to
    another user. Already read notifications are reported as found.
    """

    repository = NotificationRepository(session)
    notification = repository.get(notification_id)
    if notification is None or notification.user_id != user_id:
        return False
    if repository.mark_as_read([notification_id], user_id=user_id):
        broadcast_unread_count(session, user_id, broadcaster=broadcaster)
    return True


def mark_all_notifications_as_read(
    session: Session,
    user_id: int,
    *,
    broadcaster: NotificationBroadcaster | None = None,
) -> int:
    """Mark every unread notification of ``user_id``; return how many changed.

    The refreshed count is pushed even when nothing changed, so other tabs
    showing a stale badge are reset.
    """

    updated = NotificationRepository(session).mark_all_as_read(user_id)
    broadcast_unread_count(session, user_id, broadcaster=broadcaster)
    return updated


def cleanup_old_notifications(session: Session, *, days_old: int = 30) -> int:
    """Delete read notifications created more than ``days_old`` days ago."""

    cutoff = now_in_app_timezone() - timedelta(days=days_old)
    deleted = NotificationRepository(session).delete_read_older_than(cutoff)
    if deleted:
        logger.info("Deleted %d read notifications older than %d days", deleted, days_old)
    return deleted


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "create_notification",
    "list_notifications",
    "get_unread_count",
    "mark_notification_as_read",
    "mark_all_notifications_as_read",
    "cleanup_old_notifications",
]
