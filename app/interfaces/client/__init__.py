"""Async client for the realtime notification stream."""

from .controller import NotificationStreamController, ReconnectPolicy, StaleStreamError
from .polling import HttpxUnreadCountFetcher, NotificationPoller
from .sse import HttpxStreamTransport, StreamUnavailableError, iter_sse_data

__all__ = [
    "NotificationStreamController",
    "ReconnectPolicy",
    "StaleStreamError",
    "HttpxUnreadCountFetcher",
    "NotificationPoller",
    "HttpxStreamTransport",
    "StreamUnavailableError",
    "iter_sse_data",
]
