"""Push persisted notification changes to connected clients."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.domain.entities import Notification
from app.infrastructure.notifications import (
    NotificationBroadcaster,
    notification_broadcaster,
    serialize_notification,
)
from app.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def broadcast_new_notification(
    session: Session,
    notification: Notification,
    *,
    broadcaster: NotificationBroadcaster | None = None,
) -> None:
    """Send ``notification`` and the refreshed unread count to its recipient.

    Realtime delivery is optional for the caller: failures are logged and
    swallowed so the surrounding request still succeeds.
    """

    broadcaster = broadcaster or notification_broadcaster
    try:
        broadcaster.broadcast_notification_to_user(
            notification.user_id, serialize_notification(notification)
        )
        unread_count = NotificationRepository(session).count_unread(notification.user_id)
        broadcaster.broadcast_unread_count_to_user(notification.user_id, unread_count)
    except Exception:
        logger.exception(
            "Failed to broadcast notification %s to user %s",
            notification.id,
            notification.user_id,
        )


def broadcast_unread_count(
    session: Session,
    user_id: int,
    *,
    broadcaster: NotificationBroadcaster | None = None,
) -> None:
    """Send the current unread count of ``user_id`` to its open streams."""

    broadcaster = broadcaster or notification_broadcaster
    try:
        unread_count = NotificationRepository(session).count_unread(user_id)
        broadcaster.broadcast_unread_count_to_user(user_id, unread_count)
    except Exception:
        logger.exception("Failed to broadcast unread count to user %s", user_id)


__all__ = ["broadcast_new_notification", "broadcast_unread_count"]
