"""Aggregate application use cases."""

from .notifications import (
    create_notification,
    notify_comment_added,
    notify_ticket_assigned,
    notify_ticket_unassigned,
)
from .users import authenticate_user, create_user, record_login

__all__ = [
    "authenticate_user",
    "create_user",
    "record_login",
    "create_notification",
    "notify_ticket_assigned",
    "notify_ticket_unassigned",
    "notify_comment_added",
]
