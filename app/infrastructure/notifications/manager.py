"""Registry of open notification streams grouped by user."""

from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.utils import now_in_app_timezone

from .streams import EventStream

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionRecord:
    """A live stream registered for ``user_id``."""

    connection_id: str
    user_id: int
    stream: EventStream = field(compare=False, repr=False)
    created_at: datetime = field(default_factory=now_in_app_timezone)


class NotificationConnectionManager:
    """Track which output streams belong to which user.

    One instance lives for the whole process (see ``notification_manager``);
    entries do not survive a restart and are not shared between worker
    processes. Sync route handlers run on a thread pool, so every access to
    the table goes through a lock; broadcasters iterate over snapshots.
    """

    def __init__(self) -> None:
        self._connections: dict[str, ConnectionRecord] = {}
        self._lock = threading.Lock()

    @staticmethod
    def generate_connection_id() -> str:
        """Return a random identifier suitable for :meth:`add_connection`."""

        return secrets.token_urlsafe(9)

    def add_connection(
        self, connection_id: str, stream: EventStream, user_id: int
    ) -> ConnectionRecord:
        """Register ``stream`` for ``user_id`` under ``connection_id``.

        The caller guarantees the identifier is unique; an existing entry with
        the same key is replaced.
        """

        record = ConnectionRecord(
            connection_id=connection_id, user_id=user_id, stream=stream
        )
        with self._lock:
            self._connections[connection_id] = record
            total = len(self._connections)
        logger.info(
            "Registered notification stream %s for user %s (%d open)",
            connection_id,
            user_id,
            total,
        )
        return record

    def remove_connection(self, connection_id: str) -> ConnectionRecord | None:
        """Forget ``connection_id``; a no-op when it is not registered."""

        with self._lock:
            record = self._connections.pop(connection_id, None)
            total = len(self._connections)
        if record is not None:
            logger.info(
                "Removed notification stream %s for user %s (%d open)",
                connection_id,
                record.user_id,
                total,
            )
        return record

    def connections_for_user(self, user_id: int) -> list[ConnectionRecord]:
        """Return a snapshot of the streams currently open for ``user_id``."""

        with self._lock:
            return [
                record
                for record in self._connections.values()
                if record.user_id == user_id
            ]

    def count_for_user(self, user_id: int) -> int:
        return len(self.connections_for_user(user_id))

    def get_debug_info(self, *, now: datetime | None = None) -> dict[str, Any]:
        """Describe every open stream. Callers must restrict this to admins."""

        current = now or now_in_app_timezone()
        with self._lock:
            records = list(self._connections.values())
        return {
            "total_connections": len(records),
            "connections": [
                {
                    "connection_id": record.connection_id,
                    "user_id": record.user_id,
                    "created_at": record.created_at,
                    "age_minutes": max(
                        0, int((current - record.created_at).total_seconds() // 60)
                    ),
                }
                for record in records
            ],
        }

    def close_all(self) -> None:
        """Close every registered stream and empty the registry."""

        with self._lock:
            records = list(self._connections.values())
            self._connections.clear()
        for record in records:
            try:
                record.stream.close()
            except Exception:  # pragma: no cover - best effort during shutdown
                logger.exception(
                    "Failed to close notification stream %s", record.connection_id
                )
        if records:
            logger.info("Closed %d notification streams", len(records))

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)


notification_manager = NotificationConnectionManager()


__all__ = ["ConnectionRecord", "NotificationConnectionManager", "notification_manager"]
