"""Domain entities exposed by the application."""

from .notification import (
    NOTIFICATION_COMMENT_ADDED,
    NOTIFICATION_TICKET_ASSIGNED,
    NOTIFICATION_TICKET_UNASSIGNED,
    Notification,
    NotificationActor,
)
from .notification_event import (
    NotificationEvent,
    NotificationEventType,
    resolve_event_type,
)
from .role import ROLE_ADMIN, ROLE_AGENT, ROLE_NAMES, Role
from .user import User

__all__ = [
    "Notification",
    "NotificationActor",
    "NOTIFICATION_TICKET_ASSIGNED",
    "NOTIFICATION_TICKET_UNASSIGNED",
    "NOTIFICATION_COMMENT_ADDED",
    "NotificationEvent",
    "NotificationEventType",
    "resolve_event_type",
    "Role",
    "ROLE_ADMIN",
    "ROLE_AGENT",
    "ROLE_NAMES",
    "User",
]
