"""Episode keys for pre-alert bookkeeping.

A session key names one continuous timed episode: a flight, a jail
sentence, a hospital stay.  Thresholds already fired are remembered per
key, so a new episode starts with a clean slate even when the coarse
state label did not change in between polls.
"""

from __future__ import annotations

from tornwatch.models.profile import CoarseState
from tornwatch.travel import TravelInfo


def session_key(state: CoarseState, until: int | None, travel: TravelInfo | None) -> str | None:
    """Derive the key for the current episode, or ``None`` if not timed."""
    if state is CoarseState.TRAVELING:
        if travel is None:
            return None
        return f"T:{travel.direction.value}:{travel.started_at}"
    if state.is_timed and until:
        return f"{state.value[0]}:{until}"
    return None


def episode_end(state: CoarseState, until: int | None, travel: TravelInfo | None) -> int | None:
    """Unix seconds when the episode is expected to end.

    Flights use the earliest possible arrival so warnings are never late.
    """
    if state is CoarseState.TRAVELING:
        return travel.earliest if travel is not None else None
    if state.is_timed:
        return until
    return None
