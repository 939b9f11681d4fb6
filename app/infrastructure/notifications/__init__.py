"""Realtime notification helpers for the infrastructure layer."""

from .manager import ConnectionRecord, NotificationConnectionManager, notification_manager
from .publisher import (
    NotificationBroadcaster,
    broadcast_notification_to_user,
    broadcast_unread_count_to_user,
    notification_broadcaster,
    serialize_notification,
)
from .streams import EventStream, MemoryEventStream, StreamClosedError

__all__ = [
    "ConnectionRecord",
    "NotificationConnectionManager",
    "notification_manager",
    "NotificationBroadcaster",
    "notification_broadcaster",
    "broadcast_notification_to_user",
    "broadcast_unread_count_to_user",
    "serialize_notification",
    "EventStream",
    "MemoryEventStream",
    "StreamClosedError",
]
