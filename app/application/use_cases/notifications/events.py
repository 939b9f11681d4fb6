"""Notifications raised by ticket activity (assignment and comments)."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import (
    NOTIFICATION_COMMENT_ADDED,
    NOTIFICATION_TICKET_ASSIGNED,
    NOTIFICATION_TICKET_UNASSIGNED,
    Notification,
)
from app.infrastructure.notifications import NotificationBroadcaster
from app.infrastructure.repositories import UserRepository

from .service import create_notification


def display_ticket_number(ticket_id: str, ticket_number: str | None = None) -> str:
    """Return the human facing number of a ticket.

    Tickets created before numbering existed fall back to the last six
    characters of their identifier.
    """

    if ticket_number:
        return ticket_number
    return f"#{ticket_id[-6:].upper()}"


def notify_ticket_assigned(
    session: Session,
    *,
    ticket_id: str,
    assigned_user_id: int,
    actor_id: int,
    ticket_number: str | None = None,
    ticket_subject: str | None = None,
    broadcaster: NotificationBroadcaster | None = None,
) -> Notification | None:
    """Tell ``assigned_user_id`` that a ticket now belongs to them."""

    number = display_ticket_number(ticket_id, ticket_number)
    return create_notification(
        session,
        user_id=assigned_user_id,
        actor_id=actor_id,
        event_type=NOTIFICATION_TICKET_ASSIGNED,
        title="Ticket Assigned",
        message=f"You have been assigned to ticket {number}: {ticket_subject or 'Untitled'}",
        ticket_id=ticket_id,
        ticket_number=ticket_number,
        ticket_subject=ticket_subject,
        broadcaster=broadcaster,
    )


def notify_ticket_unassigned(
    session: Session,
    *,
    ticket_id: str,
    previous_user_id: int,
    actor_id: int,
    ticket_number: str | None = None,
    ticket_subject: str | None = None,
    new_assignee_id: int | None = None,
    broadcaster: NotificationBroadcaster | None = None,
) -> Notification | None:
    """Tell the previous assignee that the ticket was taken away from them."""

    number = display_ticket_number(ticket_id, ticket_number)
    message = f"Ticket {number} has been unassigned from you"
    if new_assignee_id is not None:
        new_assignee_name = UserRepository(session).get_name(new_assignee_id)
        if new_assignee_name:
            message = f"Ticket {number} has been reassigned from you to {new_assignee_name}"

    return create_notification(
        session,
        user_id=previous_user_id,
        actor_id=actor_id,
        event_type=NOTIFICATION_TICKET_UNASSIGNED,
        title="Ticket Unassigned",
        message=message,
        ticket_id=ticket_id,
        ticket_number=ticket_number,
        ticket_subject=ticket_subject,
        broadcaster=broadcaster,
    )


def notify_comment_added(
    session: Session,
    *,
    comment_id: str,
    ticket_id: str,
    assigned_user_id: int,
    actor_id: int,
    ticket_number: str | None = None,
    ticket_subject: str | None = None,
    broadcaster: NotificationBroadcaster | None = None,
) -> Notification | None:
    """Tell the assignee that someone commented on their ticket."""

    number = display_ticket_number(ticket_id, ticket_number)
    return create_notification(
        session,
        user_id=assigned_user_id,
        actor_id=actor_id,
        event_type=NOTIFICATION_COMMENT_ADDED,
        title="New Comment",
        message=(
            f"A new comment was added to your ticket {number}: "
            f"{ticket_subject or 'Untitled'}"
        ),
        ticket_id=ticket_id,
        ticket_number=ticket_number,
        ticket_subject=ticket_subject,
        comment_id=comment_id,
        broadcaster=broadcaster,
    )


__all__ = [
    "display_ticket_number",
    "notify_ticket_assigned",
    "notify_ticket_unassigned",
    "notify_comment_added",
]
