"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase keys, as the dashboard client expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NotificationActorRead(CamelModel):
    id: int
    name: str
    email: str


class TicketSummaryRead(CamelModel):
    id: str
    ticket_number: str | None = None
    subject: str | None = None


class NotificationRead(CamelModel):
    """Representation of a notification delivered to the client."""

    id: int
    type: str
    title: str
    message: str
    ticket_id: str | None = None
    comment_id: str | None = None
    is_read: bool
    created_at: datetime
    actor: NotificationActorRead | None = None
    ticket: TicketSummaryRead | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class NotificationListResponse(CamelModel):
    notifications: list[NotificationRead]
    unread_count: int
    total: int


class UnreadCountResponse(BaseModel):
    count: int


class NotificationUpdateRequest(CamelModel):
    """Mark a single notification, or every notification, as read."""

    notification_id: int | None = Field(default=None, description="Notification to mark as read")
    mark_all_as_read: bool = Field(default=False, description="Mark every notification as read")


class NotificationUpdateResponse(BaseModel):
    success: bool
    message: str | None = None


class ConnectionDebugRead(CamelModel):
    connection_id: str
    user_id: int
    created_at: datetime
    age_minutes: int


class NotificationStreamDebugResponse(CamelModel):
    """Snapshot of the realtime connection registry (admin diagnostics)."""

    total_connections: int
    connections: list[ConnectionDebugRead]
    server_time: datetime


class NotificationTestRequest(CamelModel):
    target_user_id: int | None = Field(
        default=None, description="Recipient; defaults to the calling administrator"
    )


class NotificationTestSummary(CamelModel):
    id: int
    title: str
    message: str
    user_id: int


class NotificationTestResponse(BaseModel):
    success: bool
    notification: NotificationTestSummary


__all__ = [
    "NotificationActorRead",
    "TicketSummaryRead",
    "NotificationRead",
    "NotificationListResponse",
    "UnreadCountResponse",
    "NotificationUpdateRequest",
    "NotificationUpdateResponse",
    "ConnectionDebugRead",
    "NotificationStreamDebugResponse",
    "NotificationTestRequest",
    "NotificationTestSummary",
    "NotificationTestResponse",
]
