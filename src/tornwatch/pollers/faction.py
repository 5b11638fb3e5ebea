"""Faction roster state machine and the daily respect digest."""

from __future__ import annotations

import asyncio
import datetime as dt
import logging

from tornwatch._constants import (
    RESPECT_MILESTONE_STEP,
    ROSTER_GUARD_MAX_MISSING_RATIO,
    ROSTER_GUARD_MIN_MEMBERS,
)
from tornwatch.exceptions import TornError
from tornwatch.models.faction import Faction, FactionMember
from tornwatch.models.profile import CoarseState
from tornwatch.notify import events
from tornwatch.pollers.base import PollContext
from tornwatch.pollers.prealerts import evaluate_pre_alerts
from tornwatch.state.models import MemberCache, TrackedFaction
from tornwatch.travel import create_travel_info, has_drifted

_logger = logging.getLogger(__name__)

#: Seconds past midnight UTC at which the daily digest runs.
DIGEST_OFFSET_SECONDS = 5


async def poll_faction(ctx: PollContext, faction_id: str) -> None:
    faction = ctx.store.faction(faction_id)
    if faction is None or not faction.enabled:
        return
    data = await ctx.client.get_faction(faction_id)
    apply_faction(ctx, faction, data)


def _member_state(member: FactionMember) -> CoarseState:
    state = member.status.state
    return CoarseState.OKAY if state is CoarseState.UNKNOWN else state


def seed_member(member: FactionMember, now_ms: int) -> MemberCache:
    state = _member_state(member)
    return MemberCache(
        name=member.name,
        last_state=state,
        last_action_ts=member.last_action.timestamp,
        travel=create_travel_info(member.status, now_ms) if state is CoarseState.TRAVELING else None,
    )


def roster_looks_broken(previous_ids: set[str], current_ids: set[str]) -> bool:
    """Whether too many known members vanished at once to trust the roster."""
    if len(previous_ids) < ROSTER_GUARD_MIN_MEMBERS:
        return False
    missing = len(previous_ids - current_ids)
    return missing / len(previous_ids) > ROSTER_GUARD_MAX_MISSING_RATIO


def apply_faction(ctx: PollContext, faction: TrackedFaction, data: Faction) -> bool:
    """Diff a fetched roster against the cache.

    Returns ``False`` when the update was skipped as untrustworthy, in
    which case nothing about the faction was changed.
    """
    label = data.name or faction.label
    previous_ids = set(faction.members)
    current_ids = set(data.members)

    if roster_looks_broken(previous_ids, current_ids):
        missing = len(previous_ids - current_ids)
        _logger.warning(
            "%s: %d/%d members missing from roster, likely an API glitch; skipping",
            label,
            missing,
            len(previous_ids),
        )
        return False

    now = ctx.now()
    now_ms = ctx.now_ms()
    faction.name = data.name or faction.name
    faction.tag = data.tag or faction.tag
    faction.last_check = now_ms

    _check_milestone(ctx, faction, data.respect, label)

    if not faction.members:
        # First roster seen for this faction: record it without
        # announcing every member as a join.
        faction.members = {uid: seed_member(member, now_ms) for uid, member in data.members.items()}
        ctx.store.save("faction-baseline")
        _logger.info("Baseline: %s with %d members", label, len(faction.members))
        return True

    joined = current_ids - previous_ids
    for uid in sorted(joined):
        member = data.members[uid]
        _logger.info("%s: %s joined", label, member.name)
        ctx.notifier.emit(events.faction_join(label, faction.id, uid, member.name))
        faction.members[uid] = seed_member(member, now_ms)

    for uid in sorted(previous_ids - current_ids):
        cached = faction.members.pop(uid)
        _logger.info("%s: %s left", label, cached.name or uid)
        ctx.notifier.emit(events.faction_leave(label, faction.id, uid, cached.name or uid))

    offline_after = faction.offline.hours * 3600
    for uid, member in data.members.items():
        if uid in joined:
            continue
        cached = faction.members[uid]
        _apply_member(ctx, faction, label, uid, member, cached, now, now_ms)

        last_action_ts = member.last_action.timestamp or 0
        if faction.offline.enabled and last_action_ts > 0:
            offline = now - last_action_ts >= offline_after
            if offline and not cached.offline_notified:
                ctx.notifier.emit(
                    events.faction_offline(
                        label, uid, member.name, last_action_ts, faction.offline.hours, now
                    )
                )
                cached.offline_notified = True
            elif not offline:
                cached.offline_notified = False

        cached.name = member.name or cached.name
        cached.last_action_ts = last_action_ts or cached.last_action_ts

    ctx.store.save("faction")
    return True


def _check_milestone(ctx: PollContext, faction: TrackedFaction, respect: int, label: str) -> None:
    if faction.last_respect_step is not None:
        previous_step = faction.last_respect_step
    else:
        previous_step = (faction.last_respect or 0) // RESPECT_MILESTONE_STEP
    current_step = respect // RESPECT_MILESTONE_STEP

    if current_step > previous_step and previous_step > 0:
        _logger.info("%s passed %d respect", label, current_step * RESPECT_MILESTONE_STEP)
        ctx.notifier.emit(events.faction_milestone(label, faction.id, respect))

    faction.last_respect = respect
    faction.last_respect_step = current_step


def _apply_member(
    ctx: PollContext,
    faction: TrackedFaction,
    label: str,
    uid: str,
    member: FactionMember,
    cached: MemberCache,
    now: int,
    now_ms: int,
) -> None:
    state = _member_state(member)
    status = member.status
    previous = cached.last_state

    if previous is None:
        cached.last_state = state
        cached.travel = create_travel_info(status, now_ms) if state is CoarseState.TRAVELING else None
        return

    if state is previous:
        if state is CoarseState.TRAVELING and cached.travel is not None and has_drifted(cached.travel, status):
            cached.travel = create_travel_info(status, now_ms)
        evaluate_pre_alerts(
            subject_id=uid,
            name=f"{member.name} ({label})",
            state=state,
            until=status.until,
            travel=cached.travel,
            thresholds=faction.pre_times_sec,
            pre_fired=cached.pre_fired,
            now=now,
            notifier=ctx.notifier,
        )
        return

    _logger.info("%s: %s %s -> %s", label, member.name, previous.value, state.value)
    cached.last_state = state
    cached.travel = create_travel_info(status, now_ms) if state is CoarseState.TRAVELING else None
    cached.pre_fired.clear()
    if faction.watches(state):
        ctx.notifier.emit(
            events.faction_member_state(label, uid, member.name, previous, state, status, cached.travel, now)
        )


# ---------------------------------------------------------------------------
# Daily digest
# ---------------------------------------------------------------------------


def seconds_until_next_digest(now: float) -> float:
    """Seconds from ``now`` (unix) until the next 00:00:05 UTC."""
    current = dt.datetime.fromtimestamp(now, tz=dt.UTC)
    midnight = current.replace(hour=0, minute=0, second=0, microsecond=0)
    target = midnight + dt.timedelta(seconds=DIGEST_OFFSET_SECONDS)
    if target <= current:
        target += dt.timedelta(days=1)
    return (target - current).total_seconds()


async def run_daily_digest(ctx: PollContext, *, pause: float = 1.0) -> int:
    """Report each faction's respect change since the previous digest.

    Factions are fetched one at a time with ``pause`` seconds in between.
    The first digest for a faction only records the baseline.

    Returns
    -------
    int
        Number of digest notifications emitted.
    """
    _logger.info("Running daily digest")
    sent = 0
    for faction_id, faction in list(ctx.store.state.factions.items()):
        if not faction.enabled or not faction.daily.enabled:
            continue
        try:
            data = await ctx.client.get_faction(faction_id)
        except TornError as exc:
            _logger.warning("Daily digest for %s failed: %s", faction.label, exc)
            continue

        respect = data.respect
        baseline = faction.daily.respect_at_midnight
        if baseline is not None:
            ctx.notifier.emit(events.faction_daily(data.name or faction.label, faction_id, respect - baseline, respect))
            sent += 1
        faction.daily.respect_at_midnight = respect
        ctx.store.save("daily")

        if pause > 0:
            await asyncio.sleep(pause)
    return sent
