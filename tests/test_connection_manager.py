"""Tests for the in-memory registry of notification streams."""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from app.infrastructure.notifications import NotificationConnectionManager


def test_add_and_remove_track_the_number_of_open_connections(make_stream) -> None:
    manager = NotificationConnectionManager()

    manager.add_connection("a", make_stream(), 1)
    manager.add_connection("b", make_stream(), 1)
    manager.add_connection("c", make_stream(), 2)
    assert manager.get_debug_info()["total_connections"] == 3

    manager.remove_connection("b")
    assert manager.get_debug_info()["total_connections"] == 2
    ids = {entry["connection_id"] for entry in manager.get_debug_info()["connections"]}
    assert ids == {"a", "c"}


def test_removing_unknown_or_already_removed_connection_is_a_noop(make_stream) -> None:
    manager = NotificationConnectionManager()
    manager.add_connection("a", make_stream(), 1)

    assert manager.remove_connection("a") is not None
    assert manager.remove_connection("a") is None
    assert manager.remove_connection("missing") is None
    assert manager.get_debug_info()["total_connections"] == 0


@pytest.mark.parametrize(
    "operations",
    [
        [("add", "x"), ("add", "y"), ("remove", "x"), ("remove", "x")],
        [("remove", "x"), ("add", "x"), ("remove", "y")],
        [("add", "x"), ("remove", "x"), ("add", "x"), ("add", "z")],
    ],
)
def test_total_matches_adds_minus_matching_removes(make_stream, operations) -> None:
    manager = NotificationConnectionManager()
    expected: set[str] = set()

    for operation, connection_id in operations:
        if operation == "add":
            manager.add_connection(connection_id, make_stream(), 7)
            expected.add(connection_id)
        else:
            manager.remove_connection(connection_id)
            expected.discard(connection_id)

    assert manager.get_debug_info()["total_connections"] == len(expected)
    assert len(manager) == len(expected)


def test_multiple_connections_per_user(make_stream) -> None:
    manager = NotificationConnectionManager()
    first, second = make_stream(), make_stream()
    manager.add_connection("tab-1", first, 5)
    manager.add_connection("tab-2", second, 5)
    manager.add_connection("other", make_stream(), 6)

    records = manager.connections_for_user(5)

    assert {record.connection_id for record in records} == {"tab-1", "tab-2"}
    assert manager.count_for_user(5) == 2
    assert manager.count_for_user(99) == 0


def test_debug_info_reports_age_in_whole_minutes(make_stream) -> None:
    manager = NotificationConnectionManager()
    record = manager.add_connection("a", make_stream(), 3)

    info = manager.get_debug_info(now=record.created_at + timedelta(minutes=2, seconds=50))

    assert info["connections"] == [
        {
            "connection_id": "a",
            "user_id": 3,
            "created_at": record.created_at,
            "age_minutes": 2,
        }
    ]


def test_close_all_closes_streams_and_empties_registry(make_stream) -> None:
    manager = NotificationConnectionManager()
    streams = [make_stream() for _ in range(3)]
    for index, stream in enumerate(streams):
        manager.add_connection(f"c{index}", stream, index)

    manager.close_all()

    assert all(stream.closed for stream in streams)
    assert manager.get_debug_info()["total_connections"] == 0


def test_generated_connection_ids_are_unique() -> None:
    ids = {NotificationConnectionManager.generate_connection_id() for _ in range(500)}
    assert len(ids) == 500


def test_concurrent_registration_from_threads(make_stream) -> None:
    manager = NotificationConnectionManager()

    def register(offset: int) -> None:
        for index in range(200):
            connection_id = f"{offset}-{index}"
            manager.add_connection(connection_id, make_stream(), offset)
            if index % 2:
                manager.remove_connection(connection_id)

    threads = [threading.Thread(target=register, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert manager.get_debug_info()["total_connections"] == 4 * 100
