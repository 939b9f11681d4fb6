"""Client side transport for the notification event stream."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

STREAM_PATH = "/notifications/stream"


class StreamUnavailableError(RuntimeError):
    """Raised when the server refuses to open the notification stream."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StreamTransport(Protocol):
    """Opens one connection to the notification stream.

    Entering the returned context yields the raw JSON payloads of the stream;
    leaving it closes the connection.
    """

    def open(self) -> AbstractAsyncContextManager[AsyncIterator[str]]:
        ...


async def iter_sse_data(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Assemble the ``data`` payload of each server-sent event in ``lines``.

    Multi-line payloads are joined with ``\\n``; comments and the other SSE
    fields (``event``, ``id``, ``retry``) are ignored.
    """

    buffer: list[str] = []
    async for line in lines:
        line = line.rstrip("\r")
        if not line:
            if buffer:
                yield "\n".join(buffer)
                buffer = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field != "data":
            continue
        buffer.append(value[1:] if value.startswith(" ") else value)
    if buffer:
        yield "\n".join(buffer)


class HttpxStreamTransport:
    """Open the notification stream of ``base_url`` with ``httpx``."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        client: httpx.AsyncClient | None = None,
        connect_timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = client
        self._timeout = httpx.Timeout(connect_timeout, read=None)

    @asynccontextmanager
    async def open(self) -> AsyncIterator[AsyncIterator[str]]:
        owns_client = self._client is None
        client = self._client or httpx.AsyncClient()
        try:
            async with client.stream(
                "GET",
                f"{self._base_url}{STREAM_PATH}",
                headers={
                    "Accept": "text/event-stream",
                    "Authorization": f"Bearer {self._token}",
                },
                timeout=self._timeout,
            ) as response:
                if response.status_code != httpx.codes.OK:
                    raise StreamUnavailableError(
                        f"Notification stream refused with HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                logger.debug("Notification stream opened at %s", response.url)
                yield iter_sse_data(response.aiter_lines())
        finally:
            if owns_client:
                await client.aclose()


__all__ = [
    "STREAM_PATH",
    "HttpxStreamTransport",
    "StreamTransport",
    "StreamUnavailableError",
    "iter_sse_data",
]
