"""Tests for the server-sent events generator behind ``/notifications/stream``."""

from __future__ import annotations

import json

import anyio
import pytest

from app.infrastructure.notifications import (
    MemoryEventStream,
    NotificationBroadcaster,
    NotificationConnectionManager,
)
from app.interfaces.api.routes.notifications import stream_notification_events

pytestmark = pytest.mark.anyio


class FakeRequest:
    def __init__(self) -> None:
        self.disconnected = False

    async def is_disconnected(self) -> bool:
        return self.disconnected


class RejectingManager(NotificationConnectionManager):
    def add_connection(self, connection_id, stream, user_id):
        raise RuntimeError("registry unavailable")


def _decode(frame: str) -> dict:
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    return json.loads(frame[len("data: ") : -2])


def _open(manager, request=None, *, user_id=1, heartbeat_interval=5.0):
    request = request or FakeRequest()
    stream = MemoryEventStream()
    generator = stream_notification_events(
        request,
        stream,
        user_id=user_id,
        manager=manager,
        heartbeat_interval=heartbeat_interval,
    )
    return request, stream, generator


async def _next(generator) -> dict:
    with anyio.fail_after(2):
        return _decode(await generator.__anext__())


async def test_first_frame_is_connected_and_stream_is_registered() -> None:
    manager = NotificationConnectionManager()
    _, _, generator = _open(manager, user_id=4)

    message = await _next(generator)

    assert message["type"] == "connected"
    assert message["timestamp"]
    assert manager.count_for_user(4) == 1
    await generator.aclose()
    assert manager.count_for_user(4) == 0


async def test_broadcast_reaches_every_stream_of_the_user() -> None:
    manager = NotificationConnectionManager()
    broadcaster = NotificationBroadcaster(manager)
    _, _, first = _open(manager, user_id=8)
    _, _, second = _open(manager, user_id=8)
    await _next(first)
    await _next(second)

    assert broadcaster.broadcast_notification_to_user(8, {"id": 11}) == 2

    for generator in (first, second):
        message = await _next(generator)
        assert message["type"] == "notification"
        assert message["data"] == {"id": 11}
        await generator.aclose()
    assert len(manager) == 0


async def test_idle_stream_sends_heartbeats() -> None:
    manager = NotificationConnectionManager()
    _, _, generator = _open(manager, heartbeat_interval=0.01)
    await _next(generator)

    assert (await _next(generator))["type"] == "heartbeat"
    assert (await _next(generator))["type"] == "heartbeat"
    await generator.aclose()


async def test_client_disconnect_removes_the_connection() -> None:
    manager = NotificationConnectionManager()
    request, stream, generator = _open(manager, heartbeat_interval=0.01)
    await _next(generator)
    assert len(manager) == 1

    request.disconnected = True

    with pytest.raises(StopAsyncIteration):
        await generator.__anext__()
    assert len(manager) == 0
    assert stream.closed


async def test_server_side_close_ends_the_stream() -> None:
    manager = NotificationConnectionManager()
    _, _, generator = _open(manager)
    await _next(generator)

    manager.close_all()

    with pytest.raises(StopAsyncIteration):
        with anyio.fail_after(2):
            await generator.__anext__()


async def test_stream_survives_failed_registration() -> None:
    manager = RejectingManager()
    _, _, generator = _open(manager, heartbeat_interval=0.01)

    assert (await _next(generator))["type"] == "connected"
    assert (await _next(generator))["type"] == "heartbeat"
    assert len(manager) == 0
    await generator.aclose()
