"""Tests for the notification REST endpoints and stream authentication."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.application.use_cases import create_user
from app.application.use_cases.notifications import create_notification
from app.infrastructure.notifications import NotificationConnectionManager
from main import create_app

PASSWORD = "StrongPass123"


@pytest.fixture
def manager() -> NotificationConnectionManager:
    return NotificationConnectionManager()


@pytest.fixture
def client(db_session, manager):
    app = create_app()
    app.state.notification_manager = manager
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def agent(db_session):
    return create_user(
        db_session, name="Grace Agent", email="grace@example.com", password=PASSWORD
    )


@pytest.fixture
def admin(db_session):
    return create_user(
        db_session,
        name="Alan Admin",
        email="alan@example.com",
        password=PASSWORD,
        role_alias="admin",
    )


def _auth(client: TestClient, email: str) -> dict[str, str]:
    response = client.post(
        "/auth/token",
        data={"username": email, "password": PASSWORD},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _notify(db_session, user, actor, title: str = "Ticket Assigned"):
    return create_notification(
        db_session,
        user_id=user.id,
        actor_id=actor.id,
        event_type="ticket_assigned",
        title=title,
        message="You have been assigned to ticket #ABC123: Printer",
        ticket_id="xyzabc123",
        ticket_subject="Printer",
    )


def test_stream_requires_authentication(client) -> None:
    response = client.get("/notifications/stream")

    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_stream_rejects_invalid_token(client, manager) -> None:
    response = client.get("/notifications/stream", params={"token": "not-a-jwt"})

    assert response.status_code == 401
    assert len(manager) == 0


def test_list_notifications_with_unread_count(db_session, client, agent, admin) -> None:
    _notify(db_session, agent, admin, "First")
    _notify(db_session, agent, admin, "Second")

    response = client.get("/notifications", headers=_auth(client, agent.email))

    assert response.status_code == 200
    payload = response.json()
    assert payload["unreadCount"] == 2
    assert payload["total"] == 2
    first = payload["notifications"][0]
    assert first["title"] == "Second"
    assert first["isRead"] is False
    assert first["actor"]["name"] == "Alan Admin"
    assert first["ticket"] == {"id": "xyzabc123", "ticketNumber": None, "subject": "Printer"}


def test_unread_only_filter_and_count(db_session, client, agent, admin) -> None:
    notification = _notify(db_session, agent, admin)
    _notify(db_session, agent, admin)
    headers = _auth(client, agent.email)

    client.patch(
        "/notifications", json={"notificationId": notification.id}, headers=headers
    )

    unread = client.get("/notifications", params={"unreadOnly": True}, headers=headers)
    assert len(unread.json()["notifications"]) == 1
    count = client.get("/notifications/unread-count", headers=headers)
    assert count.json() == {"count": 1}


def test_mark_as_read_pushes_count_to_open_streams(
    db_session, client, manager, make_stream, agent, admin
) -> None:
    notification = _notify(db_session, agent, admin)
    stream = make_stream()
    manager.add_connection("tab", stream, agent.id)

    response = client.patch(
        "/notifications",
        json={"notificationId": notification.id},
        headers=_auth(client, agent.email),
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert [event.tag for event in stream.events] == ["unread_count"]
    assert stream.events[0].data == {"count": 0}


def test_mark_all_as_read(db_session, client, agent, admin) -> None:
    for _ in range(3):
        _notify(db_session, agent, admin)

    response = client.patch(
        "/notifications",
        json={"markAllAsRead": True},
        headers=_auth(client, agent.email),
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Marked 3 notifications as read",
    }


def test_mark_as_read_of_foreign_notification_is_not_found(
    db_session, client, agent, admin
) -> None:
    notification = _notify(db_session, agent, admin)

    response = client.patch(
        "/notifications",
        json={"notificationId": notification.id},
        headers=_auth(client, admin.email),
    )

    assert response.status_code == 404


def test_patch_without_parameters_is_rejected(client, agent) -> None:
    response = client.patch("/notifications", json={}, headers=_auth(client, agent.email))

    assert response.status_code == 400


def test_debug_is_admin_only(client, agent) -> None:
    response = client.get("/notifications/debug", headers=_auth(client, agent.email))

    assert response.status_code == 403


def test_debug_lists_open_connections(client, manager, make_stream, agent, admin) -> None:
    manager.add_connection("tab-1", make_stream(), agent.id)
    manager.add_connection("tab-2", make_stream(), agent.id)

    response = client.get("/notifications/debug", headers=_auth(client, admin.email))

    assert response.status_code == 200
    payload = response.json()
    assert payload["totalConnections"] == 2
    assert payload["serverTime"]
    entry = payload["connections"][0]
    assert set(entry) == {"connectionId", "userId", "createdAt", "ageMinutes"}
    assert entry["userId"] == agent.id
    assert entry["ageMinutes"] == 0


def test_test_endpoint_delivers_to_the_target_user(
    client, manager, make_stream, agent, admin
) -> None:
    stream = make_stream()
    manager.add_connection("tab", stream, agent.id)

    response = client.post(
        "/notifications/test",
        json={"targetUserId": agent.id},
        headers=_auth(client, admin.email),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["notification"]["title"] == "Test Notification"
    assert body["notification"]["userId"] == agent.id
    assert [event.tag for event in stream.events] == ["notification", "unread_count"]
    assert stream.events[0].data["id"] == body["notification"]["id"]
    assert stream.events[1].data == {"count": 1}


def test_test_endpoint_defaults_to_the_caller(client, manager, make_stream, admin) -> None:
    stream = make_stream()
    manager.add_connection("tab", stream, admin.id)

    response = client.post("/notifications/test", headers=_auth(client, admin.email))

    assert response.status_code == 200
    assert response.json()["notification"]["userId"] == admin.id
    assert stream.events[0].data["title"] == "Test Notification"


def test_test_endpoint_is_admin_only(client, agent) -> None:
    response = client.post("/notifications/test", headers=_auth(client, agent.email))

    assert response.status_code == 403
