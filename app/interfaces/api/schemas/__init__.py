from .auth import Token
from .notification import (
    ConnectionDebugRead,
    NotificationActorRead,
    NotificationListResponse,
    NotificationRead,
    NotificationStreamDebugResponse,
    NotificationUpdateRequest,
    NotificationUpdateResponse,
    NotificationTestRequest,
    NotificationTestResponse,
    NotificationTestSummary,
    TicketSummaryRead,
    UnreadCountResponse,
)

__all__ = [
    "Token",
    "ConnectionDebugRead",
    "NotificationActorRead",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationStreamDebugResponse",
    "NotificationUpdateRequest",
    "NotificationUpdateResponse",
    "NotificationTestRequest",
    "NotificationTestResponse",
    "NotificationTestSummary",
    "TicketSummaryRead",
    "UnreadCountResponse",
]
