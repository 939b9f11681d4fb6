"""Tests for the wire format of notification stream events."""

from __future__ import annotations

import json

import pytest

from app.domain.entities import NotificationEvent, NotificationEventType


def test_encode_produces_a_single_sse_data_frame() -> None:
    event = NotificationEvent.unread_count(3, "2024-01-01T00:00:00+00:00")

    frame = event.encode()

    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    assert json.loads(frame[len("data: ") : -2]) == {
        "type": "unread_count",
        "data": {"count": 3},
        "timestamp": "2024-01-01T00:00:00+00:00",
    }


def test_events_without_data_omit_the_field() -> None:
    message = NotificationEvent.heartbeat("2024-01-01T00:00:00Z").to_dict()
    assert message == {"type": "heartbeat", "timestamp": "2024-01-01T00:00:00Z"}


@pytest.mark.parametrize(
    ("tag", "expected"),
    [
        ("connected", NotificationEventType.CONNECTED),
        ("heartbeat", NotificationEventType.HEARTBEAT),
        ("ping", NotificationEventType.HEARTBEAT),
        ("notification", NotificationEventType.NOTIFICATION),
        ("notification_created", NotificationEventType.NOTIFICATION),
        ("unread_count", NotificationEventType.UNREAD_COUNT),
        ("unread_count_changed", NotificationEventType.UNREAD_COUNT),
        ("notification_read", NotificationEventType.UNREAD_COUNT),
        ("ticket_merged", NotificationEventType.UNKNOWN),
    ],
)
def test_parse_folds_legacy_tags(tag: str, expected: NotificationEventType) -> None:
    event = NotificationEvent.parse(json.dumps({"type": tag, "timestamp": "t"}))

    assert event.type is expected
    assert event.raw_type == tag


def test_unknown_events_keep_their_original_tag() -> None:
    event = NotificationEvent.parse('{"type": "ticket_merged", "data": {"id": 1}}')

    assert event.tag == "ticket_merged"
    assert event.data == {"id": 1}
    assert event.timestamp == ""


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '"text"'])
def test_parse_rejects_non_object_payloads(raw: str) -> None:
    with pytest.raises(ValueError):
        NotificationEvent.parse(raw)
