"""Per-player state machine."""

from __future__ import annotations

import logging

from tornwatch.models.profile import CoarseState, Profile
from tornwatch.notify import events
from tornwatch.pollers.base import PollContext
from tornwatch.pollers.prealerts import evaluate_pre_alerts
from tornwatch.state.models import TrackedUser
from tornwatch.travel import create_travel_info, has_drifted

_logger = logging.getLogger(__name__)


async def poll_user(ctx: PollContext, user_id: str) -> None:
    """Fetch one tracked player and apply the result.

    Fetch errors propagate to the scheduler, which logs them; nothing is
    mutated in that case.
    """
    user = ctx.store.user(user_id)
    if user is None or not user.enabled:
        return
    profile = await ctx.client.get_profile(user_id)
    apply_profile(ctx, user, profile)


def apply_profile(ctx: PollContext, user: TrackedUser, profile: Profile) -> None:
    """Diff ``profile`` against what we remember about ``user``.

    * First observation records a silent baseline.
    * Same state runs pre-alerts and, for flights, destination drift.
    * A state change recomputes travel, resets fired thresholds and
      notifies when the new state is watched.
    """
    status = profile.status
    state = status.state
    now = ctx.now()
    now_ms = ctx.now_ms()

    user.name = profile.name or user.name
    user.last_check = now_ms
    previous = user.last_state

    if previous is None:
        user.last_state = state
        user.travel = create_travel_info(status, now_ms) if state is CoarseState.TRAVELING else None
        ctx.store.save("baseline")
        _logger.info("Baseline: %s = %s", user.name or user.id, state.value)
        return

    if state is previous:
        fired = evaluate_pre_alerts(
            subject_id=user.id,
            name=user.name,
            state=state,
            until=status.until,
            travel=user.travel,
            thresholds=user.pre_times_sec,
            pre_fired=user.pre_fired,
            now=now,
            notifier=ctx.notifier,
        )
        if fired:
            ctx.store.save("pre-alert")

        if state is CoarseState.TRAVELING and user.travel is not None and has_drifted(user.travel, status):
            user.travel = create_travel_info(status, now_ms)
            ctx.store.save("travel-update")
            _logger.info("%s travel changed: %s", user.name, status.description)
            if user.watches(CoarseState.TRAVELING):
                ctx.notifier.emit(events.travel_update(user.id, user.name, status, user.travel, now))
        return

    _logger.info("%s: %s -> %s", user.name, previous.value, state.value)
    user.last_state = state
    user.travel = create_travel_info(status, now_ms) if state is CoarseState.TRAVELING else None
    user.pre_fired.clear()
    ctx.store.save("state-change")

    if user.watches(state):
        ctx.notifier.emit(events.state_change(user.id, user.name, previous, state, status, user.travel, now))
