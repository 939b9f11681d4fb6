"""Polling fallback used when the notification stream is unavailable."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

UnreadCountFetcher = Callable[[], Awaitable["int | None"]]


class HttpxUnreadCountFetcher:
    """Read the unread notification count from the REST API."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/notifications"
        self._token = token
        self._client = client
        self._timeout = timeout

    async def __call__(self) -> int | None:
        headers = {"Authorization": f"Bearer {self._token}"}
        params = {"limit": 5}
        if self._client is not None:
            response = await self._client.get(
                self._url, params=params, headers=headers, timeout=self._timeout
            )
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._url, params=params, headers=headers)
        response.raise_for_status()
        body = response.json()
        count = body.get("unreadCount") if isinstance(body, dict) else None
        return count if isinstance(count, int) else None


class NotificationPoller:
    """Fetch the unread count every ``interval`` seconds until stopped.

    Runs independently of the stream controller; fetch errors are logged and
    the next tick is still scheduled.
    """

    def __init__(
        self,
        fetch: UnreadCountFetcher,
        on_unread_count_update: Callable[[int], None] | None = None,
        *,
        interval: float = 30.0,
    ) -> None:
        self._fetch = fetch
        self._on_unread_count_update = on_unread_count_update
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        logger.info("Starting notification polling every %.0fs", self.interval)
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Notification polling task failed")
        logger.info("Stopped notification polling")

    async def poll_once(self) -> None:
        try:
            count = await self._fetch()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Notification polling failed: %s", exc)
            return
        except Exception:
            logger.exception("Unexpected error while polling notifications")
            return
        if count is None or self._on_unread_count_update is None:
            return
        try:
            self._on_unread_count_update(count)
        except Exception:
            logger.exception(
                "Unread count callback %r failed", self._on_unread_count_update
            )

    async def _run(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.interval)


__all__ = ["HttpxUnreadCountFetcher", "NotificationPoller", "UnreadCountFetcher"]
