"""Fire-and-forget delivery of notifications.

Pollers call :meth:`NotificationDispatcher.emit`, which only enqueues;
a single worker task drains the queue into the configured sink.  A slow
or failing sink therefore never delays a poll tick.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Protocol

from tornwatch.exceptions import TornNotificationError
from tornwatch.notify.events import Notification

_logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """What pollers need: a non-blocking emit."""

    def emit(self, notification: Notification) -> None:
        ...


class NotificationSink(Protocol):
    async def send(self, notification: Notification) -> None:
        ...

    async def close(self) -> None:
        ...


class NotificationDispatcher:
    """Queue plus worker in front of a :class:`NotificationSink`.

    Parameters
    ----------
    sink : NotificationSink
        Where messages end up.
    max_queue : int
        Messages beyond this backlog are dropped (and logged).
    attempts : int
        Delivery attempts per message before giving up.
    retry_delay : float
        Base delay in seconds between attempts, multiplied by the attempt
        number.  A sink-provided ``retry_after`` takes precedence.
    """

    def __init__(
        self,
        sink: NotificationSink,
        *,
        max_queue: int = 1000,
        attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self._sink = sink
        self._queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=max_queue)
        self._attempts = max(1, attempts)
        self._retry_delay = retry_delay
        self._worker: asyncio.Task[None] | None = None
        self._sent = 0
        self._failed = 0
        self._dropped = 0

    @property
    def sink(self) -> NotificationSink:
        return self._sink

    def emit(self, notification: Notification) -> None:
        try:
            self._queue.put_nowait(notification)
        except asyncio.QueueFull:
            self._dropped += 1
            _logger.warning("Notification queue full, dropping %s: %s", notification.kind, notification.title)

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="tornwatch-notify")

    async def stop(self, *, drain_timeout: float = 5.0) -> None:
        """Deliver what is queued (bounded by ``drain_timeout``) and stop."""
        if self._worker is not None:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            except TimeoutError:
                _logger.warning("Dropping %d undelivered notifications on shutdown", self._queue.qsize())
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None
        await self._sink.close()

    async def _run(self) -> None:
        while True:
            notification = await self._queue.get()
            try:
                await self._deliver(notification)
            finally:
                self._queue.task_done()

    async def _deliver(self, notification: Notification) -> None:
        for attempt in range(1, self._attempts + 1):
            try:
                await self._sink.send(notification)
            except TornNotificationError as exc:
                if attempt == self._attempts:
                    self._failed += 1
                    _logger.error("Giving up on %s after %d attempts: %s", notification.kind, attempt, exc)
                    return
                delay = exc.retry_after if exc.retry_after is not None else self._retry_delay * attempt
                _logger.warning("Delivery of %s failed (%s), retrying in %.1fs", notification.kind, exc, delay)
                await asyncio.sleep(delay)
            except Exception:
                self._failed += 1
                _logger.exception("Unexpected error delivering %s", notification.kind)
                return
            else:
                self._sent += 1
                return

    def get_stats(self) -> dict[str, Any]:
        return {
            "queued": self._queue.qsize(),
            "sent": self._sent,
            "failed": self._failed,
            "dropped": self._dropped,
        }
