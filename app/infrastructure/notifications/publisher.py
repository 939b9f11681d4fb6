"""Fan notification events out to every stream of a user."""

from __future__ import annotations

import logging
from typing import Any

from app.domain.entities import Notification, NotificationEvent
from app.utils import now_isoformat

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class NotificationBroadcaster:
    """Serialize events and write them to the registered streams.

    Delivery is at-most-once: nothing is buffered for users without an open
    stream and a failed write is never retried. A stream that rejects a write
    is evicted from the registry instead of surfacing an error.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    def broadcast(self, user_id: int, event: NotificationEvent) -> int:
        """Write ``event`` to every stream of ``user_id``; return the deliveries."""

        delivered = 0
        for record in self._manager.connections_for_user(user_id):
            try:
                record.stream.send(event)
            except Exception as exc:
                logger.warning(
                    "Dropping notification stream %s for user %s: %s",
                    record.connection_id,
                    user_id,
                    exc,
                )
                self._manager.remove_connection(record.connection_id)
            else:
                delivered += 1
        logger.debug(
            "Broadcast %s event to user %s on %d stream(s)",
            event.tag,
            user_id,
            delivered,
        )
        return delivered

    def broadcast_notification_to_user(
        self, user_id: int, payload: dict[str, Any]
    ) -> int:
        return self.broadcast(
            user_id, NotificationEvent.notification(payload, now_isoformat())
        )

    def broadcast_unread_count_to_user(self, user_id: int, count: int) -> int:
        return self.broadcast(
            user_id, NotificationEvent.unread_count(count, now_isoformat())
        )


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the stream payload representation for ``notification``."""

    ticket = None
    if notification.ticket_id:
        ticket = {
            "id": notification.ticket_id,
            "ticketNumber": notification.ticket_number,
            "subject": notification.ticket_subject,
        }
    actor = None
    if notification.actor is not None:
        actor = {
            "id": notification.actor.id,
            "name": notification.actor.name,
            "email": notification.actor.email,
        }
    return {
        "id": notification.id,
        "type": notification.event_type,
        "title": notification.title,
        "message": notification.message,
        "ticketId": notification.ticket_id,
        "commentId": notification.comment_id,
        "isRead": notification.is_read,
        "createdAt": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "actor": actor,
        "ticket": ticket,
        "payload": notification.payload or {},
    }


notification_broadcaster = NotificationBroadcaster(notification_manager)


def broadcast_notification_to_user(user_id: int, payload: dict[str, Any]) -> int:
    """Public helper that delegates to the shared broadcaster."""

    return notification_broadcaster.broadcast_notification_to_user(user_id, payload)


def broadcast_unread_count_to_user(user_id: int, count: int) -> int:
    """Public helper that delegates to the shared broadcaster."""

    return notification_broadcaster.broadcast_unread_count_to_user(user_id, count)


__all__ = [
    "NotificationBroadcaster",
    "notification_broadcaster",
    "broadcast_notification_to_user",
    "broadcast_unread_count_to_user",
    "serialize_notification",
]
