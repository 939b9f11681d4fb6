"""Keep a live notification stream open and recover from drops."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from app.domain.entities import NotificationEvent, NotificationEventType

from .polling import NotificationPoller
from .sse import StreamTransport, StreamUnavailableError

logger = logging.getLogger(__name__)

NotificationCallback = Callable[[dict[str, Any]], None]
UnreadCountCallback = Callable[[int], None]
ConnectionStatusCallback = Callable[[bool], None]


class StaleStreamError(RuntimeError):
    """Raised when the stream stays silent for longer than the heartbeat timeout."""


@dataclass(frozen=True)
class ReconnectPolicy:
    """Capped exponential backoff between reconnect attempts (seconds)."""

    base_delay: float = 1.0
    max_delay: float = 30.0
    max_attempts: int = 5

    def delay_for(self, attempt: int) -> float:
        """Return the wait before reconnect number ``attempt + 1``."""

        return min(self.base_delay * (2**attempt), self.max_delay)


class NotificationStreamController:
    """Consume the notification stream and dispatch its events.

    ``is_connected`` only turns ``True`` once the server's ``connected`` event
    arrives. When the transport fails, the controller waits according to
    ``policy`` and reconnects; after ``policy.max_attempts`` consecutive
    failures it gives up, records ``connection_error`` and, when enabled,
    hands over to the polling fallback. ``reconnect()`` restarts a controller
    that gave up.
    """

    def __init__(
        self,
        transport: StreamTransport,
        *,
        on_notification: NotificationCallback | None = None,
        on_unread_count_update: UnreadCountCallback | None = None,
        on_connection_status_change: ConnectionStatusCallback | None = None,
        policy: ReconnectPolicy | None = None,
        heartbeat_timeout: float = 60.0,
        poller: NotificationPoller | None = None,
        enable_polling_fallback: bool = True,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._on_notification = on_notification
        self._on_unread_count_update = on_unread_count_update
        self._on_connection_status_change = on_connection_status_change
        self.policy = policy or ReconnectPolicy()
        self.heartbeat_timeout = heartbeat_timeout
        self._poller = poller
        self._enable_polling_fallback = enable_polling_fallback
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

        self.is_connected = False
        self.connection_error: str | None = None
        self.gave_up = False
        self.reconnect_attempts = 0
        self.last_heartbeat: float | None = None

    @property
    def using_polling(self) -> bool:
        return self._poller is not None and self._poller.running

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Open the stream in a background task (no-op while running)."""

        if self.running:
            return
        self.gave_up = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def reconnect(self) -> None:
        """Drop the current connection and start over with a fresh budget."""

        await self._cancel_task()
        self.reconnect_attempts = 0
        self.connection_error = None
        self.start()

    async def close(self) -> None:
        """Close the transport, cancel pending retries and stop polling."""

        await self._cancel_task()
        if self._poller is not None:
            await self._poller.stop()
        self._set_connected(False)
        self.last_heartbeat = None

    async def wait_closed(self) -> None:
        """Wait until the background task ends (it ends after giving up)."""

        if self._task is not None:
            await asyncio.shield(self._task)

    async def __aenter__(self) -> "NotificationStreamController":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def handle_message(self, raw: str) -> NotificationEvent | None:
        """Decode one payload and dispatch it to the registered callbacks."""

        try:
            event = NotificationEvent.parse(raw)
        except ValueError:
            logger.warning("Ignoring malformed notification event: %r", raw[:200])
            return None

        if event.type is NotificationEventType.CONNECTED:
            self.reconnect_attempts = 0
            self.connection_error = None
            self.gave_up = False
            self.last_heartbeat = time.monotonic()
            self._set_connected(True)
            if self._poller is not None:
                await self._poller.stop()
        elif event.type is NotificationEventType.HEARTBEAT:
            self.last_heartbeat = time.monotonic()
        elif event.type is NotificationEventType.NOTIFICATION:
            payload = event.data
            if event.raw_type == "notification_created" and isinstance(payload, dict):
                payload = payload.get("notification")
            if isinstance(payload, dict):
                self._invoke(self._on_notification, payload)
        elif event.type is NotificationEventType.UNREAD_COUNT:
            count = None
            if isinstance(event.data, dict):
                count = event.data.get("count", event.data.get("unreadCount"))
            if isinstance(count, int):
                self._invoke(self._on_unread_count_update, count)
        else:
            logger.info("Ignoring unknown notification event type %r", event.raw_type)
        return event

    async def _run(self) -> None:
        while True:
            try:
                await self._consume()
                error = "Notification stream ended"
            except StaleStreamError as exc:
                error = str(exc)
            except (StreamUnavailableError, httpx.HTTPError, OSError) as exc:
                error = f"Notification stream error: {exc}"
            except Exception as exc:
                logger.exception("Unexpected notification stream failure")
                error = f"Notification stream error: {exc}"
            logger.warning(error)
            self._set_connected(False)

            if self.reconnect_attempts >= self.policy.max_attempts:
                await self._give_up()
                return

            delay = self.policy.delay_for(self.reconnect_attempts)
            self.connection_error = (
                f"Connection lost. Reconnecting in {math.ceil(delay)}s..."
            )
            logger.info(
                "Reconnecting notification stream (attempt %d/%d) in %.1fs",
                self.reconnect_attempts + 1,
                self.policy.max_attempts,
                delay,
            )
            await self._sleep(delay)
            self.reconnect_attempts += 1

    async def _consume(self) -> None:
        async with self._transport.open() as payloads:
            iterator = payloads.__aiter__()
            while True:
                try:
                    raw = await asyncio.wait_for(
                        iterator.__anext__(), timeout=self.heartbeat_timeout
                    )
                except asyncio.TimeoutError as exc:
                    raise StaleStreamError(
                        f"No event received for {self.heartbeat_timeout:.0f}s"
                    ) from exc
                except StopAsyncIteration:
                    return
                await self.handle_message(raw)

    async def _give_up(self) -> None:
        self.gave_up = True
        if self._enable_polling_fallback and self._poller is not None:
            self.connection_error = "Realtime connection failed. Using polling fallback."
            logger.warning("Giving up on the notification stream; polling instead")
            self._poller.start()
        else:
            self.connection_error = "Realtime connection failed."
            logger.warning("Giving up on the notification stream")

    async def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _set_connected(self, connected: bool) -> None:
        if self.is_connected == connected:
            return
        self.is_connected = connected
        self._invoke(self._on_connection_status_change, connected)

    @staticmethod
    def _invoke(callback: Callable[[Any], None] | None, value: Any) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception("Notification callback %r failed", callback)


__all__ = [
    "NotificationStreamController",
    "ReconnectPolicy",
    "StaleStreamError",
]
