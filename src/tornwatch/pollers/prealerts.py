"""Pre-alert ("ending soon") warnings for timed episodes.

Thresholds are walked largest first.  A poll that lands after several
thresholds already elapsed (say, after downtime) fires every one of
them in that same pass, so each threshold is notified exactly once per
episode no matter how coarse the polling is.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tornwatch.models.profile import CoarseState
from tornwatch.notify import events
from tornwatch.notify.dispatcher import Notifier
from tornwatch.session_key import episode_end, session_key
from tornwatch.travel import TravelInfo

_logger = logging.getLogger(__name__)


def evaluate_pre_alerts(
    *,
    subject_id: str,
    name: str,
    state: CoarseState,
    until: int | None,
    travel: TravelInfo | None,
    thresholds: Iterable[int],
    pre_fired: dict[str, set[int]],
    now: int,
    notifier: Notifier,
) -> list[int]:
    """Fire due thresholds for the current episode and record them.

    ``pre_fired`` is mutated in place.  When the episode's session key is
    not the one on record, history for any older key is dropped first.

    Returns
    -------
    list of int
        Thresholds fired by this call, in firing order.
    """
    ordered = sorted(thresholds, reverse=True)
    if not ordered:
        return []

    end_at = episode_end(state, until, travel)
    if not end_at:
        return []
    left = end_at - now
    if left <= 0:
        return []

    key = session_key(state, until, travel)
    if key is None:
        return []
    if key not in pre_fired:
        pre_fired.clear()
        pre_fired[key] = set()
    fired = pre_fired[key]

    newly_fired: list[int] = []
    for threshold in ordered:
        if left <= threshold and threshold not in fired:
            fired.add(threshold)
            newly_fired.append(threshold)
            notifier.emit(events.pre_alert(subject_id, name, state, end_at, left))
    if newly_fired:
        _logger.info("Pre-alert %s %s: %ss left, fired %s", name, state.value, left, newly_fired)
    return newly_fired
