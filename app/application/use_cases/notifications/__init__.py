"""Public helpers for emitting and acknowledging notifications."""

from .events import (
    display_ticket_number,
    notify_comment_added,
    notify_ticket_assigned,
    notify_ticket_unassigned,
)
from .realtime import broadcast_new_notification, broadcast_unread_count
from .service import (
    DEFAULT_PAGE_SIZE,
    cleanup_old_notifications,
    create_notification,
    get_unread_count,
    list_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
)

__all__ = [
    "display_ticket_number",
    "notify_ticket_assigned",
    "notify_ticket_unassigned",
    "notify_comment_added",
    "broadcast_new_notification",
    "broadcast_unread_count",
    "DEFAULT_PAGE_SIZE",
    "create_notification",
    "list_notifications",
    "get_unread_count",
    "mark_notification_as_read",
    "mark_all_notifications_as_read",
    "cleanup_old_notifications",
]
