"""Cooldowns and activity icons, both derived from the icon feed."""

from __future__ import annotations

import logging

from tornwatch._constants import ICON_RACING_ACTIVE, ICON_RACING_FINISHED
from tornwatch.models.icons import Icon, IconFeed
from tornwatch.models.kinds import CooldownKind, IconKind
from tornwatch.notify import events
from tornwatch.pollers.base import PollContext
from tornwatch.state.models import IconSnapshot, IconTracking, SelfTrackingState

_logger = logging.getLogger(__name__)


def _snapshot(icon: Icon, now: int) -> IconSnapshot:
    return IconSnapshot(id=icon.id, until=icon.until, description=icon.description, checked_at=now)


def apply_icons(ctx: PollContext, feed: IconFeed) -> None:
    tracking = ctx.store.state.self_tracking
    now = ctx.now()
    _apply_cooldowns(ctx, tracking, feed)
    for kind in IconKind:
        icon_state = tracking.icons[kind]
        if not icon_state.enabled:
            continue
        if kind is IconKind.RACING:
            _apply_racing(ctx, icon_state, feed, now)
        else:
            _apply_icon(ctx, kind, icon_state, feed, now)
    ctx.store.save("icons")


async def poll_icons(ctx: PollContext) -> None:
    feed = await ctx.client.get_icons()
    apply_icons(ctx, feed)


# ---------------------------------------------------------------------------
# Cooldowns
# ---------------------------------------------------------------------------


def _apply_cooldowns(ctx: PollContext, tracking: SelfTrackingState, feed: IconFeed) -> None:
    # A cooldown is running while any of its icons is in the feed.
    for kind in CooldownKind:
        cooldown = tracking.cooldowns[kind]
        if not cooldown.enabled:
            continue
        icon = feed.first_of(kind.icon_ids)
        if icon is not None:
            cooldown.until = icon.until
            cooldown.description = icon.description
            cooldown.was_ready = False
            continue
        if not cooldown.was_ready:
            ctx.notifier.emit(events.cooldown_ready(kind))
            _logger.info("%s cooldown ready", kind.info.title)
        cooldown.was_ready = True
        cooldown.until = None
        cooldown.description = ""


def cooldown_remaining(tracking: SelfTrackingState, kind: CooldownKind, now: int) -> int:
    """Seconds left on a cooldown according to the last icon seen (0 if none)."""
    until = tracking.cooldowns[kind].until
    if not until:
        return 0
    return max(0, until - now)


def is_cooldown_ready(tracking: SelfTrackingState, kind: CooldownKind) -> bool:
    return tracking.cooldowns[kind].was_ready


# ---------------------------------------------------------------------------
# Trackable icons
# ---------------------------------------------------------------------------


def _apply_icon(ctx: PollContext, kind: IconKind, state: IconTracking, feed: IconFeed, now: int) -> None:
    icon = feed.first_of(kind.icon_ids)
    last = state.last

    if icon is None:
        if last is not None and state.notified:
            ctx.notifier.emit(events.icon_ended(kind))
            _logger.info("%s ended (icon removed)", kind.info.title)
        state.notified = False
        state.last = None
        return

    # A new expiry on an icon we already had means a new occurrence.
    is_new = last is None or (icon.until is not None and icon.until != last.until)
    if is_new and not state.notified:
        ctx.notifier.emit(events.icon_started(kind, icon, now))
        state.notified = True
        _logger.info("%s started", kind.info.title)

    if last is not None and last.until and icon.until is None and last.until <= now:
        ctx.notifier.emit(events.icon_ended(kind))
        state.notified = False
        _logger.info("%s ended", kind.info.title)

    state.last = _snapshot(icon, now)


def _apply_racing(ctx: PollContext, state: IconTracking, feed: IconFeed, now: int) -> None:
    # Active and finished are mutually exclusive icons; the finished one
    # shows briefly after a race.
    active = feed.get(ICON_RACING_ACTIVE)
    finished = feed.get(ICON_RACING_FINISHED)
    last = state.last

    if active is not None:
        is_new = last is None or active.until != last.until
        if is_new and not state.notified:
            ctx.notifier.emit(events.icon_started(IconKind.RACING, active, now))
            state.notified = True
            _logger.info("Racing started")
        state.last = _snapshot(active, now)
    elif finished is not None:
        if state.notified:
            ctx.notifier.emit(events.racing_finished(finished))
            state.notified = False
            _logger.info("Racing finished")
        state.last = None
    else:
        if last is not None and state.notified:
            ctx.notifier.emit(events.icon_ended(IconKind.RACING))
            _logger.info("Racing ended (icon removed)")
        state.notified = False
        state.last = None
