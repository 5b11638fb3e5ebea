"""Pollers: one fetch-diff-notify step per tracked category."""

from tornwatch.pollers.bars import apply_bars, poll_bars
from tornwatch.pollers.base import PollContext, TornApi
from tornwatch.pollers.chain import apply_chain, observe_chain, poll_chain
from tornwatch.pollers.company import apply_addiction, poll_company
from tornwatch.pollers.faction import apply_faction, poll_faction, run_daily_digest
from tornwatch.pollers.icons import apply_icons, cooldown_remaining, is_cooldown_ready, poll_icons
from tornwatch.pollers.prealerts import evaluate_pre_alerts
from tornwatch.pollers.scheduler import PeriodicPoller, PollerManager, RoundRobinPoller
from tornwatch.pollers.user import apply_profile, poll_user

__all__ = [
    "PeriodicPoller",
    "PollContext",
    "PollerManager",
    "RoundRobinPoller",
    "TornApi",
    "apply_addiction",
    "apply_bars",
    "apply_chain",
    "apply_faction",
    "apply_icons",
    "apply_profile",
    "cooldown_remaining",
    "evaluate_pre_alerts",
    "is_cooldown_ready",
    "observe_chain",
    "poll_bars",
    "poll_chain",
    "poll_company",
    "poll_faction",
    "poll_icons",
    "poll_user",
    "run_daily_digest",
]
