"""Bar fullness alerts for the key owner."""

from __future__ import annotations

import logging

from tornwatch.models.bars import Bars
from tornwatch.models.kinds import BarKind
from tornwatch.notify import events
from tornwatch.pollers.base import PollContext
from tornwatch.pollers.chain import observe_chain

_logger = logging.getLogger(__name__)


def apply_bars(ctx: PollContext, bars: Bars) -> list[BarKind]:
    """Notify bars that just became full.  Returns the kinds notified."""
    tracking = ctx.store.state.self_tracking
    notified: list[BarKind] = []
    for kind in BarKind:
        bar_state = tracking.bars[kind]
        if not bar_state.enabled:
            continue
        bar = bars.bar(kind)
        if bar is None:
            continue
        full = bar.is_full
        if full and not bar_state.was_full:
            ctx.notifier.emit(events.bar_full(kind, bar))
            notified.append(kind)
            _logger.info("%s full: %d/%d", kind.info.title, bar.current, bar.maximum)
        bar_state.was_full = full
        bar_state.current = bar.current
        bar_state.maximum = bar.maximum

    # The bars selection carries the chain too; keep the epoch tracker fed.
    if bars.chain is not None:
        observe_chain(tracking.chain, bars.chain, ctx.now_ms())

    ctx.store.save("bars")
    return notified


async def poll_bars(ctx: PollContext) -> None:
    bars = await ctx.client.get_bars()
    apply_bars(ctx, bars)
