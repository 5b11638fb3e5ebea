"""Persisted tracking state and its store.

The store is the single owner of everything pollers remember between
ticks; see :mod:`tornwatch.state.store`.
"""

from tornwatch.state.models import (
    AddictionTracking,
    BarTracking,
    ChainTracking,
    CooldownTracking,
    DailySettings,
    IconSnapshot,
    IconTracking,
    MemberCache,
    OfflineSettings,
    SelfTrackingState,
    TrackedFaction,
    TrackedUser,
    TrackerState,
)
from tornwatch.state.store import StateStore

__all__ = [
    "AddictionTracking",
    "BarTracking",
    "ChainTracking",
    "CooldownTracking",
    "DailySettings",
    "IconSnapshot",
    "IconTracking",
    "MemberCache",
    "OfflineSettings",
    "SelfTrackingState",
    "StateStore",
    "TrackedFaction",
    "TrackedUser",
    "TrackerState",
]
