"""Endpoints and server-sent events stream for realtime notifications."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import anyio
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    DEFAULT_PAGE_SIZE,
    create_notification,
    get_unread_count,
    list_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
)
from app.config import get_settings
from app.domain.entities import (
    NOTIFICATION_TICKET_ASSIGNED,
    Notification,
    NotificationEvent,
    User,
)
from app.infrastructure.database import get_db
from app.infrastructure.notifications import (
    MemoryEventStream,
    NotificationBroadcaster,
    NotificationConnectionManager,
    StreamClosedError,
)
from app.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_broadcaster,
    get_notification_manager,
    get_stream_user,
    require_admin,
)
from app.interfaces.api.schemas import (
    NotificationActorRead,
    NotificationListResponse,
    NotificationRead,
    NotificationStreamDebugResponse,
    NotificationTestRequest,
    NotificationTestResponse,
    NotificationUpdateRequest,
    NotificationUpdateResponse,
    TicketSummaryRead,
    UnreadCountResponse,
)
from app.utils import now_in_app_timezone, now_isoformat

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _notification_to_schema(notification: Notification) -> NotificationRead:
    actor = None
    if notification.actor is not None:
        actor = NotificationActorRead(
            id=notification.actor.id,
            name=notification.actor.name,
            email=notification.actor.email,
        )
    ticket = None
    if notification.ticket_id:
        ticket = TicketSummaryRead(
            id=notification.ticket_id,
            ticket_number=notification.ticket_number,
            subject=notification.ticket_subject,
        )
    return NotificationRead(
        id=notification.id or 0,
        type=notification.event_type,
        title=notification.title,
        message=notification.message,
        ticket_id=notification.ticket_id,
        comment_id=notification.comment_id,
        is_read=notification.is_read,
        created_at=notification.created_at,
        actor=actor,
        ticket=ticket,
        payload=notification.payload or {},
    )


async def stream_notification_events(
    request: Request,
    stream: MemoryEventStream,
    *,
    user_id: int,
    manager: NotificationConnectionManager,
    heartbeat_interval: float,
) -> AsyncIterator[str]:
    """Yield SSE frames for one client until it goes away.

    The stream is registered when the response starts and removed from the
    registry whenever the generator ends: client disconnect, cancellation by
    the server, or the stream being closed on shutdown.
    """

    connection_id = manager.generate_connection_id()
    try:
        manager.add_connection(connection_id, stream, user_id)
    except Exception:
        # The client still gets heartbeats and keeps its polling fallback.
        logger.exception(
            "Could not register notification stream for user %s", user_id
        )

    try:
        yield NotificationEvent.connected(now_isoformat()).encode()
        while True:
            if await request.is_disconnected():
                logger.debug("Client of notification stream %s disconnected", connection_id)
                break
            event = None
            with anyio.move_on_after(heartbeat_interval):
                event = await stream.receive()
            if event is None:
                event = NotificationEvent.heartbeat(now_isoformat())
            yield event.encode()
    except StreamClosedError:
        logger.debug("Notification stream %s closed by the server", connection_id)
    finally:
        manager.remove_connection(connection_id)
        stream.release()


@router.get("/stream")
async def notifications_stream(
    request: Request,
    current_user: User = Depends(get_stream_user),
    manager: NotificationConnectionManager = Depends(get_notification_manager),
) -> StreamingResponse:
    """Server-sent events stream of the authenticated user's notifications."""

    settings = get_settings()
    stream = MemoryEventStream(settings.sse_max_buffered_events)
    logger.info("Opening notification stream for user %s", current_user.id)
    return StreamingResponse(
        stream_notification_events(
            request,
            stream,
            user_id=current_user.id,
            manager=manager,
            heartbeat_interval=settings.sse_heartbeat_interval_seconds,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("", response_model=NotificationListResponse)
def get_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationListResponse:
    """Return the most recent notifications for the authenticated user."""

    notifications = list_notifications(
        db, current_user.id, unread_only=unread_only, limit=limit, offset=offset
    )
    return NotificationListResponse(
        notifications=[_notification_to_schema(n) for n in notifications],
        unread_count=get_unread_count(db, current_user.id),
        total=len(notifications),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_notifications_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=get_unread_count(db, current_user.id))


@router.patch("", response_model=NotificationUpdateResponse)
def update_notifications(
    body: NotificationUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    broadcaster: NotificationBroadcaster = Depends(get_notification_broadcaster),
) -> NotificationUpdateResponse:
    """Mark one notification, or all of them, as read."""

    if body.mark_all_as_read:
        marked = mark_all_notifications_as_read(
            db, current_user.id, broadcaster=broadcaster
        )
        return NotificationUpdateResponse(
            success=True, message=f"Marked {marked} notifications as read"
        )

    if body.notification_id is not None:
        if not mark_notification_as_read(
            db, body.notification_id, current_user.id, broadcaster=broadcaster
        ):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found or not authorized",
            )
        return NotificationUpdateResponse(success=True)

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Missing notificationId or markAllAsRead parameter",
    )


@router.get(
    "/debug",
    response_model=NotificationStreamDebugResponse,
    dependencies=[Depends(require_admin)],
)
def debug_notification_streams(
    manager: NotificationConnectionManager = Depends(get_notification_manager),
) -> NotificationStreamDebugResponse:
    """Describe the open notification streams of this process."""

    now = now_in_app_timezone()
    info = manager.get_debug_info(now=now)
    return NotificationStreamDebugResponse(
        total_connections=info["total_connections"],
        connections=info["connections"],
        server_time=now,
    )


@router.post("/test", response_model=NotificationTestResponse)
def create_test_notification(
    body: NotificationTestRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
    broadcaster: NotificationBroadcaster = Depends(get_notification_broadcaster),
) -> NotificationTestResponse:
    """Create a notification to exercise the realtime pipeline end to end."""

    target_user_id = (body.target_user_id if body else None) or current_user.id
    logger.info(
        "Admin %s requested a test notification for user %s",
        current_user.id,
        target_user_id,
    )
    try:
        notification = create_notification(
            db,
            user_id=target_user_id,
            actor_id=current_user.id,
            event_type=NOTIFICATION_TICKET_ASSIGNED,
            title="Test Notification",
            message=(
                "This is a test notification created at "
                f"{now_in_app_timezone():%Y-%m-%d %H:%M:%S}"
            ),
            allow_self=True,
            broadcaster=broadcaster,
        )
    except Exception as exc:
        logger.exception("Failed to create test notification")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create notification",
        ) from exc

    return NotificationTestResponse(
        success=True,
        notification={
            "id": notification.id,
            "title": notification.title,
            "message": notification.message,
            "user_id": notification.user_id,
        },
    )
