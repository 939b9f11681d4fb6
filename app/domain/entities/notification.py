"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

NOTIFICATION_TICKET_ASSIGNED = "ticket_assigned"
NOTIFICATION_TICKET_UNASSIGNED = "ticket_unassigned"
NOTIFICATION_COMMENT_ADDED = "comment_added"


@dataclass
class NotificationActor:
    """Summary of the user whose action produced a notification."""

    id: int
    name: str
    email: str


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    user_id: int
    actor_id: int | None
    event_type: str
    title: str
    message: str
    ticket_id: str | None = None
    ticket_number: str | None = None
    ticket_subject: str | None = None
    comment_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    read_at: datetime | None = None
    actor: NotificationActor | None = None

    @property
    def is_read(self) -> bool:
        return self.read_at is not None


__all__ = [
    "Notification",
    "NotificationActor",
    "NOTIFICATION_TICKET_ASSIGNED",
    "NOTIFICATION_TICKET_UNASSIGNED",
    "NOTIFICATION_COMMENT_ADDED",
]
