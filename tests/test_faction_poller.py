from __future__ import annotations

import datetime as dt

import pytest

from tests.factories import NOW, FakeClock, FakeTornClient, RecordingNotifier, make_faction, member, roster
from tornwatch.exceptions import TornApiError
from tornwatch.models.profile import CoarseState
from tornwatch.notify.events import NotificationKind
from tornwatch.pollers.base import PollContext
from tornwatch.pollers.faction import (
    apply_faction,
    poll_faction,
    roster_looks_broken,
    run_daily_digest,
    seconds_until_next_digest,
)
from tornwatch.state.models import TrackedFaction
from tornwatch.state.store import StateStore


def _track(store: StateStore, faction_id: str = "42", **kwargs: object) -> TrackedFaction:
    faction = TrackedFaction.model_validate({"id": faction_id, **kwargs})
    store.state.factions[faction.id] = faction
    return faction


def _seeded(ctx: PollContext, store: StateStore, count: int = 10, **kwargs: object) -> TrackedFaction:
    faction = _track(store, **kwargs)
    apply_faction(ctx, faction, make_faction(roster(count)))
    return faction


def test_first_roster_is_seeded_silently(ctx: PollContext, store: StateStore, notifier: RecordingNotifier) -> None:
    faction = _seeded(ctx, store)

    assert len(faction.members) == 10
    assert faction.name == "Night Owls"
    assert faction.tag == "NO"
    assert faction.members["3"].last_state is CoarseState.OKAY
    assert notifier.sent == []


def test_roster_guard_thresholds() -> None:
    ten = {str(i) for i in range(10)}
    assert roster_looks_broken(ten, set(list(ten)[:4]))
    assert not roster_looks_broken(ten, set(list(ten)[:5]))
    # Small factions are never guarded.
    assert not roster_looks_broken({"1", "2", "3"}, set())


def test_guard_skips_update_without_mutation(
    ctx: PollContext, store: StateStore, notifier: RecordingNotifier, clock: FakeClock
) -> None:
    faction = _seeded(ctx, store)
    last_check = faction.last_check
    clock.advance(60)

    # Six of ten members vanished at once.
    accepted = apply_faction(ctx, faction, make_faction(roster(4), name="Renamed", respect=999_999))

    assert accepted is False
    assert len(faction.members) == 10
    assert faction.name == "Night Owls"
    assert faction.last_check == last_check
    assert faction.last_respect == 1_000
    assert notifier.sent == []


def test_half_roster_missing_is_trusted(ctx: PollContext, store: StateStore, notifier: RecordingNotifier) -> None:
    faction = _seeded(ctx, store)

    assert apply_faction(ctx, faction, make_faction(roster(5)))

    assert sorted(faction.members, key=int) == ["1", "2", "3", "4", "5"]
    assert notifier.kinds() == [NotificationKind.FACTION_LEAVE] * 5


def test_joins_and_leaves(ctx: PollContext, store: StateStore, notifier: RecordingNotifier) -> None:
    faction = _seeded(ctx, store, count=3)
    members = roster(3)
    del members["1"]
    members["4"] = member("Newbie", state="Traveling", description="Traveling to Mexico")

    apply_faction(ctx, faction, make_faction(members))

    assert set(faction.members) == {"2", "3", "4"}
    assert faction.members["4"].last_state is CoarseState.TRAVELING
    assert faction.members["4"].travel is not None
    assert notifier.kinds() == [NotificationKind.FACTION_JOIN, NotificationKind.FACTION_LEAVE]
    assert notifier.sent[0].title == "Newbie joined Night Owls"
    assert notifier.sent[1].title == "Member1 left Night Owls"


def test_member_transition_respects_watched_states(
    ctx: PollContext, store: StateStore, notifier: RecordingNotifier
) -> None:
    faction = _seeded(ctx, store, count=3, states=["Hospital"])
    members = roster(3)
    members["1"] = member("Member1", state="Hospital", until=NOW + 600)
    members["2"] = member("Member2", state="Jail", until=NOW + 600)

    apply_faction(ctx, faction, make_faction(members))

    assert faction.members["1"].last_state is CoarseState.HOSPITAL
    assert faction.members["2"].last_state is CoarseState.JAIL
    assert notifier.kinds() == [NotificationKind.FACTION_MEMBER_STATE]
    assert notifier.sent[0].title == "Member1 (Night Owls) -> Hospital"


def test_member_pre_alerts(ctx: PollContext, store: StateStore, notifier: RecordingNotifier) -> None:
    faction = _track(store, pre_times_sec=[120])
    members = roster(3)
    members["2"] = member("Member2", state="Jail", until=NOW + 100)
    apply_faction(ctx, faction, make_faction(members))

    apply_faction(ctx, faction, make_faction(members))
    apply_faction(ctx, faction, make_faction(members))

    assert notifier.kinds() == [NotificationKind.PRE_ALERT]
    assert notifier.sent[0].title == "Member2 (Night Owls) - Jail ending soon!"


def test_offline_alert_is_debounced(
    ctx: PollContext, store: StateStore, notifier: RecordingNotifier
) -> None:
    faction = _seeded(ctx, store, count=3)
    stale = NOW - 25 * 3600
    members = roster(3)
    members["2"] = member("Member2", last_action=stale)

    apply_faction(ctx, faction, make_faction(members))
    apply_faction(ctx, faction, make_faction(members))

    assert notifier.kinds() == [NotificationKind.FACTION_OFFLINE]
    assert notifier.sent[0].title == "Member2 (Night Owls) offline 24h+"
    assert faction.members["2"].offline_notified

    # Back online resets the flag so a later absence alerts again.
    apply_faction(ctx, faction, make_faction(roster(3)))
    assert not faction.members["2"].offline_notified
    apply_faction(ctx, faction, make_faction(members))
    assert notifier.kinds() == [NotificationKind.FACTION_OFFLINE] * 2


def test_offline_alerts_can_be_disabled(
    ctx: PollContext, store: StateStore, notifier: RecordingNotifier
) -> None:
    faction = _seeded(ctx, store, count=3, offline={"enabled": False})
    members = roster(3, last_action=NOW - 30 * 3600)

    apply_faction(ctx, faction, make_faction(members))

    assert notifier.sent == []


def test_respect_milestone(ctx: PollContext, store: StateStore, notifier: RecordingNotifier) -> None:
    faction = _track(store, last_respect=150_000, last_respect_step=1)
    apply_faction(ctx, faction, make_faction(roster(3), respect=199_000))
    assert notifier.sent == []

    apply_faction(ctx, faction, make_faction(roster(3), respect=210_000))

    assert notifier.kinds() == [NotificationKind.FACTION_MILESTONE]
    assert notifier.sent[0].title == "Night Owls reached 210,000 respect"
    assert faction.last_respect_step == 2


def test_milestone_falls_back_to_last_respect(
    ctx: PollContext, store: StateStore, notifier: RecordingNotifier
) -> None:
    faction = _track(store, last_respect=250_000)

    apply_faction(ctx, faction, make_faction(roster(3), respect=300_500))

    assert notifier.kinds() == [NotificationKind.FACTION_MILESTONE]


def test_no_milestone_from_zero(ctx: PollContext, store: StateStore, notifier: RecordingNotifier) -> None:
    faction = _track(store)

    apply_faction(ctx, faction, make_faction(roster(3), respect=120_000))

    assert notifier.sent == []
    assert faction.last_respect_step == 1


@pytest.mark.asyncio
async def test_poll_faction_skips_disabled(ctx: PollContext, store: StateStore, client: FakeTornClient) -> None:
    _track(store, enabled=False)

    await poll_faction(ctx, "42")

    assert client.calls == []


def test_seconds_until_next_digest() -> None:
    noon = dt.datetime(2026, 1, 1, 12, 0, tzinfo=dt.UTC).timestamp()
    midnight = dt.datetime(2026, 1, 1, tzinfo=dt.UTC).timestamp()

    assert seconds_until_next_digest(noon) == 12 * 3600 + 5
    assert seconds_until_next_digest(midnight) == 5
    assert seconds_until_next_digest(midnight + 5) == 86400


@pytest.mark.asyncio
async def test_daily_digest_reports_delta_after_baseline(
    ctx: PollContext, store: StateStore, client: FakeTornClient, notifier: RecordingNotifier
) -> None:
    faction = _track(store)
    client.factions["42"].extend([make_faction(roster(3), respect=10_000), make_faction(roster(3), respect=10_750)])

    assert await run_daily_digest(ctx, pause=0) == 0
    assert faction.daily.respect_at_midnight == 10_000

    assert await run_daily_digest(ctx, pause=0) == 1
    assert notifier.kinds() == [NotificationKind.FACTION_DAILY]
    assert notifier.sent[0].title == "Night Owls daily respect: +750"
    assert notifier.sent[0].fields == {"Total": "10,750"}
    assert faction.daily.respect_at_midnight == 10_750


@pytest.mark.asyncio
async def test_daily_digest_continues_past_failures(
    ctx: PollContext, store: StateStore, client: FakeTornClient, notifier: RecordingNotifier
) -> None:
    _track(store, "1", daily={"respect_at_midnight": 100})
    _track(store, "2", daily={"respect_at_midnight": 100})
    _track(store, "3", daily={"enabled": False, "respect_at_midnight": 100})
    client.factions["1"].append(TornApiError("boom", code=9))
    client.factions["2"].append(make_faction(roster(3), faction_id=2, respect=90))

    assert await run_daily_digest(ctx, pause=0) == 1

    assert notifier.sent[0].title == "Night Owls daily respect: -10"
    assert ("faction", "3") not in client.calls
