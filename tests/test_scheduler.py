from __future__ import annotations

import asyncio

import pytest

from tornwatch.config import Intervals
from tornwatch.exceptions import TornApiError, TornDataError, TornRateLimitError
from tornwatch.pollers.base import PollContext
from tornwatch.pollers.scheduler import PeriodicPoller, PollerManager, RoundRobinPoller
from tornwatch.state.models import TrackedFaction, TrackedUser
from tornwatch.state.store import StateStore


class _Recorder:
    def __init__(self, fail: dict[str, BaseException] | None = None) -> None:
        self.polled: list[str] = []
        self.fail = fail or {}

    async def __call__(self, item: str) -> None:
        self.polled.append(item)
        if item in self.fail:
            raise self.fail[item]


@pytest.mark.asyncio
async def test_round_robin_cycles_items() -> None:
    poll = _Recorder()
    poller = RoundRobinPoller("users", 1.0, poll)
    poller.refresh(["a", "b", "c"])

    for _ in range(4):
        await poller.tick()

    assert poll.polled == ["a", "b", "c", "a"]
    assert poller.ticks == 4


@pytest.mark.asyncio
async def test_refresh_clamps_cursor() -> None:
    poll = _Recorder()
    poller = RoundRobinPoller("users", 1.0, poll)
    poller.refresh(["a", "b", "c"])
    await poller.tick()
    await poller.tick()
    assert poller.index == 2

    poller.refresh(["a", "b"])
    assert poller.index == 1
    assert await poller.tick() == "b"

    poller.refresh([])
    assert poller.index == 0
    assert await poller.tick() is None


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped() -> None:
    gate = asyncio.Event()
    polled: list[str] = []

    async def slow(item: str) -> None:
        polled.append(item)
        await gate.wait()

    poller = RoundRobinPoller("factions", 1.0, slow)
    poller.refresh(["1", "2"])

    first = asyncio.create_task(poller.tick())
    await asyncio.sleep(0)
    assert poller.busy
    assert await poller.tick() is None

    gate.set()
    assert await first == "1"
    assert polled == ["1"]
    assert not poller.busy


@pytest.mark.asyncio
async def test_errors_are_isolated_per_item() -> None:
    poll = _Recorder(
        fail={
            "a": TornRateLimitError("slow down", code=5),
            "b": TornDataError("empty roster"),
            "c": RuntimeError("bug"),
        }
    )
    poller = RoundRobinPoller("users", 1.0, poll)
    poller.refresh(["a", "b", "c", "d"])

    for _ in range(4):
        await poller.tick()

    assert poll.polled == ["a", "b", "c", "d"]
    assert poller.errors == 3


@pytest.mark.asyncio
async def test_periodic_poller_reports_outcome() -> None:
    calls = 0

    async def ok() -> None:
        nonlocal calls
        calls += 1

    async def broken() -> None:
        raise TornApiError("nope", code=9)

    assert await PeriodicPoller("bars", 1.0, ok).tick() is True
    failing = PeriodicPoller("icons", 1.0, broken)
    assert await failing.tick() is False
    assert failing.errors == 1
    assert calls == 1


@pytest.mark.asyncio
async def test_timer_ticks_immediately_and_stops() -> None:
    poll = _Recorder()
    poller = RoundRobinPoller("users", 3600, poll)
    poller.refresh(["a"])

    poller.start()
    await asyncio.sleep(0.01)
    assert poller.running
    poller.stop()
    await poller.wait_idle()

    assert not poller.running
    assert poll.polled == ["a"]


@pytest.mark.asyncio
async def test_wait_idle_waits_for_slow_tick_after_stop() -> None:
    gate = asyncio.Event()
    polled: list[str] = []

    async def slow(item: str) -> None:
        polled.append(item)
        await gate.wait()

    poller = RoundRobinPoller("users", 0.01, slow)
    poller.refresh(["a", "b"])
    poller.start()
    # Several timer slots pass while the first tick is blocked.
    await asyncio.sleep(0.05)
    assert poller.busy
    poller.stop()

    waiter = asyncio.create_task(poller.wait_idle())
    await asyncio.sleep(0.01)
    assert not waiter.done()

    gate.set()
    await waiter
    assert not poller.busy
    assert polled == ["a"]


@pytest.mark.asyncio
async def test_manager_starts_only_what_is_tracked(ctx: PollContext, store: StateStore) -> None:
    store.state.users["1"] = TrackedUser(id="1")
    store.state.users["2"] = TrackedUser(id="2", enabled=False)
    store.state.factions["9"] = TrackedFaction(id="9", enabled=False)
    store.state.self_tracking.chain.enabled = True
    manager = PollerManager(ctx, Intervals(users=3600, factions=3600, bars=3600, chain=3600, icons=3600, company=3600))

    manager.refresh()
    assert manager.users.items == ["1"]
    assert not manager.users.running

    manager.start()
    try:
        running = {name for name, stats in manager.get_stats().items() if stats["running"]}
        assert running == {"users", "bars", "chain"}

        store.state.self_tracking.chain.enabled = False
        store.state.users["1"].enabled = False
        manager.refresh()
        running = {name for name, stats in manager.get_stats().items() if stats["running"]}
        assert running == set()
    finally:
        await manager.stop()

    assert all(not poller.running for poller in manager.pollers)
