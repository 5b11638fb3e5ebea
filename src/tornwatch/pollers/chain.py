"""Chain epoch tracker.

An epoch is one continuous chain.  It begins when the hit counter drops
below the last value seen (the chain broke and a new one started) or
rises from zero.  Each configured threshold fires at most once per
epoch; only the current epoch's fired set is kept.
"""

from __future__ import annotations

import logging

from tornwatch.models.bars import Chain
from tornwatch.notify import events
from tornwatch.pollers.base import PollContext
from tornwatch.state.models import ChainTracking

_logger = logging.getLogger(__name__)


def observe_chain(tracking: ChainTracking, chain: Chain, now_ms: int) -> bool:
    """Record a chain sample, starting a new epoch when needed.

    Both the bars and the chain pollers feed samples through here so an
    epoch boundary is detected whichever of them sees it first.

    Returns
    -------
    bool
        Whether a new epoch started.
    """
    previous = tracking.last_current
    current = chain.current
    started = current < previous or (previous == 0 and current > 0)
    if started:
        tracking.epoch_id += 1
        tracking.fired = {tracking.epoch_id: set()}
        _logger.info("Chain epoch %d started at %d hits", tracking.epoch_id, current)

    tracking.last_current = current
    tracking.last_timeout = chain.timeout
    tracking.updated_at = now_ms
    return started


def due_thresholds(tracking: ChainTracking, chain: Chain) -> list[int]:
    """Thresholds to fire now, largest first, and mark them fired."""
    if not tracking.enabled or chain.current < tracking.min:
        return []
    fired = tracking.fired.setdefault(tracking.epoch_id, set())
    due: list[int] = []
    for threshold in sorted(tracking.thresholds, reverse=True):
        if threshold not in fired and 0 <= chain.timeout <= threshold:
            fired.add(threshold)
            due.append(threshold)
    return due


def apply_chain(ctx: PollContext, chain: Chain) -> list[int]:
    tracking = ctx.store.state.self_tracking.chain
    observe_chain(tracking, chain, ctx.now_ms())
    due = due_thresholds(tracking, chain)
    for threshold in due:
        ctx.notifier.emit(events.chain_alert(chain, threshold))
    if due:
        _logger.info("Chain %d: %ss left, fired %s", chain.current, chain.timeout, due)
    ctx.store.save("chain")
    return due


async def poll_chain(ctx: PollContext) -> None:
    bars = await ctx.client.get_bars()
    if bars.chain is None:
        return
    apply_chain(ctx, bars.chain)
