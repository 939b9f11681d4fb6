"""Output handles that carry notification events to a single client."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Any, Callable, Protocol

import anyio

from app.domain.entities import NotificationEvent

logger = logging.getLogger(__name__)

# Upper bound for a worker thread waiting on the event loop to accept a write.
_CROSS_THREAD_TIMEOUT_SECONDS = 5.0


class StreamClosedError(RuntimeError):
    """Raised when writing to a stream whose client is gone."""


class EventStream(Protocol):
    """Write side of a realtime connection as seen by the registry."""

    def send(self, event: NotificationEvent) -> None:
        ...

    def close(self) -> None:
        ...


class MemoryEventStream:
    """In-memory channel between broadcasters and one streaming response.

    The handle must be created inside the event loop that serves the
    response. ``send`` and ``close`` may then be called either from that loop
    or from any other thread (sync route handlers run on a worker pool); off
    loop calls are marshalled back onto the loop and wait for the outcome, so
    a failed write always reaches the caller as :class:`StreamClosedError`.
    """

    def __init__(self, max_buffered_events: int = 100) -> None:
        self._send_stream, self._receive_stream = anyio.create_memory_object_stream(
            max_buffer_size=max_buffered_events
        )
        self._loop = asyncio.get_running_loop()
        self._loop_thread_id = threading.get_ident()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: NotificationEvent) -> None:
        """Queue ``event`` for delivery or raise :class:`StreamClosedError`."""

        if self._closed:
            raise StreamClosedError("Stream is closed")
        self._call_on_loop(self._send_nowait, event)

    def close(self) -> None:
        """Stop accepting events; the reader drains what is already queued."""

        if self._closed:
            return
        self._closed = True
        try:
            self._call_on_loop(self._send_stream.close)
        except StreamClosedError:
            logger.debug("Stream loop already gone while closing")

    async def receive(self) -> NotificationEvent:
        """Wait for the next event; raise :class:`StreamClosedError` at the end."""

        try:
            return await self._receive_stream.receive()
        except (anyio.EndOfStream, anyio.ClosedResourceError) as exc:
            raise StreamClosedError("Stream is closed") from exc

    def release(self) -> None:
        """Release both ends of the channel. Called by the response owner."""

        self._closed = True
        self._send_stream.close()
        self._receive_stream.close()

    def _send_nowait(self, event: NotificationEvent) -> None:
        try:
            self._send_stream.send_nowait(event)
        except anyio.WouldBlock as exc:
            # The reader stopped draining; treat the client as gone.
            self._closed = True
            raise StreamClosedError("Stream buffer is full") from exc
        except (anyio.ClosedResourceError, anyio.BrokenResourceError) as exc:
            self._closed = True
            raise StreamClosedError("Stream is closed") from exc

    def _call_on_loop(self, func: Callable[..., Any], *args: Any) -> None:
        if threading.get_ident() == self._loop_thread_id:
            func(*args)
            return

        future: Future[None] = Future()

        def runner() -> None:
            try:
                func(*args)
            except BaseException as exc:  # noqa: BLE001 - relayed to the caller
                future.set_exception(exc)
            else:
                future.set_result(None)

        try:
            self._loop.call_soon_threadsafe(runner)
            future.result(timeout=_CROSS_THREAD_TIMEOUT_SECONDS)
        except StreamClosedError:
            raise
        except (RuntimeError, FutureTimeoutError) as exc:
            # The owning event loop is closed or no longer running.
            self._closed = True
            raise StreamClosedError("Stream event loop is not running") from exc


__all__ = ["EventStream", "MemoryEventStream", "StreamClosedError"]
