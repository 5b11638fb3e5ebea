"""Addiction tracking from the company employee feed."""

from __future__ import annotations

import logging

from tornwatch.notify import events
from tornwatch.pollers.base import PollContext

_logger = logging.getLogger(__name__)


def apply_addiction(ctx: PollContext, value: int) -> None:
    addiction = ctx.store.state.self_tracking.addiction
    addiction.last = value
    below = value <= addiction.threshold

    if below and not addiction.notified:
        ctx.notifier.emit(events.addiction_alert(value, addiction.threshold))
        addiction.notified = True
        _logger.info("Addiction alert: %d <= %d", value, addiction.threshold)
    elif not below and addiction.notified:
        ctx.notifier.emit(events.addiction_recovered(value, addiction.threshold))
        addiction.notified = False
        _logger.info("Addiction recovered: %d > %d", value, addiction.threshold)

    ctx.store.save("company")


async def poll_company(ctx: PollContext) -> None:
    state = ctx.store.state
    if not state.self_tracking.addiction.enabled:
        return
    if state.owner_id is None:
        _logger.warning("Owner id unknown, skipping company poll")
        return

    employees = await ctx.client.get_company_employees()
    me = employees.get(str(state.owner_id))
    if me is None:
        _logger.warning("Key owner %s not found among company employees", state.owner_id)
        return
    apply_addiction(ctx, me.effectiveness.addiction)
