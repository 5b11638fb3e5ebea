from __future__ import annotations

import pytest

from tests.factories import FakeTornClient, RecordingNotifier
from tornwatch.models.company import CompanyEmployee
from tornwatch.notify.events import NotificationKind
from tornwatch.pollers.base import PollContext
from tornwatch.pollers.company import apply_addiction, poll_company
from tornwatch.state.store import StateStore


def _employee(addiction: int) -> CompanyEmployee:
    return CompanyEmployee.model_validate(
        {"name": "Me", "position": "Cleaner", "effectiveness": {"addiction": addiction}}
    )


def test_addiction_alert_and_recovery(ctx: PollContext, store: StateStore, notifier: RecordingNotifier) -> None:
    addiction = store.state.self_tracking.addiction
    addiction.enabled = True
    addiction.threshold = -5

    for value in (-3, -5, -8, -6, -2, -1):
        apply_addiction(ctx, value)

    assert notifier.kinds() == [NotificationKind.ADDICTION_ALERT, NotificationKind.ADDICTION_RECOVERED]
    assert notifier.sent[0].title == "Addiction at -5"
    assert addiction.last == -1
    assert addiction.notified is False


@pytest.mark.asyncio
async def test_poll_company_looks_up_key_owner(
    ctx: PollContext, store: StateStore, client: FakeTornClient, notifier: RecordingNotifier
) -> None:
    store.state.owner_id = 123
    store.state.self_tracking.addiction.enabled = True
    client.employees.append({"123": _employee(-9), "456": _employee(0)})

    await poll_company(ctx)

    assert notifier.kinds() == [NotificationKind.ADDICTION_ALERT]
    assert store.state.self_tracking.addiction.last == -9


@pytest.mark.asyncio
async def test_poll_company_skips_without_owner_or_when_disabled(
    ctx: PollContext, store: StateStore, client: FakeTornClient
) -> None:
    await poll_company(ctx)

    store.state.self_tracking.addiction.enabled = True
    await poll_company(ctx)

    assert client.calls == []


@pytest.mark.asyncio
async def test_poll_company_owner_not_employed(
    ctx: PollContext, store: StateStore, client: FakeTornClient, notifier: RecordingNotifier
) -> None:
    store.state.owner_id = 123
    store.state.self_tracking.addiction.enabled = True
    client.employees.append({"456": _employee(-20)})

    await poll_company(ctx)

    assert client.calls == [("company", "")]
    assert notifier.sent == []
    assert store.state.self_tracking.addiction.last is None
