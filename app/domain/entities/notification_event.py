"""Domain event exchanged over the realtime notification stream."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class NotificationEventType(str, Enum):
    """Kinds of events carried by the notification stream."""

    CONNECTED = "connected"
    HEARTBEAT = "heartbeat"
    NOTIFICATION = "notification"
    UNREAD_COUNT = "unread_count"
    # Only produced when decoding a tag this version does not know.
    UNKNOWN = "unknown"


# Legacy tags still emitted by older servers.
_TYPE_ALIASES: dict[str, NotificationEventType] = {
    "ping": NotificationEventType.HEARTBEAT,
    "notification_created": NotificationEventType.NOTIFICATION,
    "unread_count_changed": NotificationEventType.UNREAD_COUNT,
    "notification_read": NotificationEventType.UNREAD_COUNT,
}


def resolve_event_type(tag: Any) -> NotificationEventType:
    """Map a wire ``tag`` to its :class:`NotificationEventType`."""

    if not isinstance(tag, str):
        return NotificationEventType.UNKNOWN
    if tag in _TYPE_ALIASES:
        return _TYPE_ALIASES[tag]
    try:
        event_type = NotificationEventType(tag)
    except ValueError:
        return NotificationEventType.UNKNOWN
    return event_type


@dataclass(frozen=True)
class NotificationEvent:
    """Single message written to a notification stream.

    ``data`` is any JSON-serializable value; it is omitted from the wire
    representation when ``None``. ``raw_type`` keeps the original tag of
    decoded events so forward-compatible consumers can log what they skipped.
    """

    type: NotificationEventType
    timestamp: str
    data: Any = None
    raw_type: str | None = None

    @classmethod
    def connected(cls, timestamp: str) -> "NotificationEvent":
        return cls(type=NotificationEventType.CONNECTED, timestamp=timestamp)

    @classmethod
    def heartbeat(cls, timestamp: str) -> "NotificationEvent":
        return cls(type=NotificationEventType.HEARTBEAT, timestamp=timestamp)

    @classmethod
    def notification(cls, payload: Any, timestamp: str) -> "NotificationEvent":
        return cls(
            type=NotificationEventType.NOTIFICATION, timestamp=timestamp, data=payload
        )

    @classmethod
    def unread_count(cls, count: int, timestamp: str) -> "NotificationEvent":
        return cls(
            type=NotificationEventType.UNREAD_COUNT,
            timestamp=timestamp,
            data={"count": count},
        )

    @property
    def tag(self) -> str:
        """Return the tag used on the wire for this event."""

        if self.type is NotificationEventType.UNKNOWN and self.raw_type:
            return self.raw_type
        return self.type.value

    def to_dict(self) -> dict[str, Any]:
        message: dict[str, Any] = {"type": self.tag}
        if self.data is not None:
            message["data"] = self.data
        message["timestamp"] = self.timestamp
        return message

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def encode(self) -> str:
        """Return the server-sent events frame for this event."""

        return f"data: {self.to_json()}\n\n"

    @classmethod
    def parse(cls, raw: str) -> "NotificationEvent":
        """Decode a JSON ``raw`` payload received from the stream.

        Raises ``ValueError`` when ``raw`` is not a JSON object. Unknown tags
        decode to :attr:`NotificationEventType.UNKNOWN` instead of failing.
        """

        message = json.loads(raw)
        if not isinstance(message, dict):
            raise ValueError("Notification event must be a JSON object")

        tag = message.get("type")
        timestamp = message.get("timestamp")
        return cls(
            type=resolve_event_type(tag),
            timestamp=timestamp if isinstance(timestamp, str) else "",
            data=message.get("data"),
            raw_type=tag if isinstance(tag, str) else None,
        )


__all__ = ["NotificationEvent", "NotificationEventType", "resolve_event_type"]
