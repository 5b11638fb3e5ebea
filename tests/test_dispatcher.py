from __future__ import annotations

import pytest

from tornwatch.exceptions import TornNotificationError
from tornwatch.notify.dispatcher import NotificationDispatcher
from tornwatch.notify.events import Notification, NotificationKind


def _note(title: str = "Alice -> Hospital") -> Notification:
    return Notification(kind=NotificationKind.STATE_CHANGE, title=title)


class _Sink:
    def __init__(self, failures: list[BaseException] | None = None) -> None:
        self.failures = list(failures or [])
        self.attempts = 0
        self.delivered: list[Notification] = []
        self.closed = False

    async def send(self, notification: Notification) -> None:
        self.attempts += 1
        if self.failures:
            raise self.failures.pop(0)
        self.delivered.append(notification)

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_emit_queues_and_stop_drains() -> None:
    sink = _Sink()
    dispatcher = NotificationDispatcher(sink)

    dispatcher.emit(_note("one"))
    dispatcher.emit(_note("two"))
    assert dispatcher.get_stats()["queued"] == 2

    dispatcher.start()
    await dispatcher.stop()

    assert [n.title for n in sink.delivered] == ["one", "two"]
    assert dispatcher.get_stats() == {"queued": 0, "sent": 2, "failed": 0, "dropped": 0}
    assert sink.closed


@pytest.mark.asyncio
async def test_transient_failures_are_retried() -> None:
    sink = _Sink([TornNotificationError("502"), TornNotificationError("429", status_code=429, retry_after=0)])
    dispatcher = NotificationDispatcher(sink, retry_delay=0)

    dispatcher.emit(_note())
    dispatcher.start()
    await dispatcher.stop()

    assert sink.attempts == 3
    assert len(sink.delivered) == 1
    assert dispatcher.get_stats()["failed"] == 0


@pytest.mark.asyncio
async def test_gives_up_after_bounded_attempts() -> None:
    sink = _Sink([TornNotificationError("down")] * 5)
    dispatcher = NotificationDispatcher(sink, attempts=3, retry_delay=0)

    dispatcher.emit(_note())
    dispatcher.start()
    await dispatcher.stop()

    assert sink.attempts == 3
    assert dispatcher.get_stats()["failed"] == 1


@pytest.mark.asyncio
async def test_unexpected_errors_are_not_retried() -> None:
    sink = _Sink([RuntimeError("bug")])
    dispatcher = NotificationDispatcher(sink, retry_delay=0)

    dispatcher.emit(_note("lost"))
    dispatcher.emit(_note("kept"))
    dispatcher.start()
    await dispatcher.stop()

    assert sink.attempts == 2
    assert [n.title for n in sink.delivered] == ["kept"]
    assert dispatcher.get_stats()["failed"] == 1


@pytest.mark.asyncio
async def test_full_queue_drops() -> None:
    dispatcher = NotificationDispatcher(_Sink(), max_queue=1)

    dispatcher.emit(_note("one"))
    dispatcher.emit(_note("two"))

    assert dispatcher.get_stats()["dropped"] == 1
    await dispatcher.stop()
