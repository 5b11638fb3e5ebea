"""Persisted tracking state.

Everything the pollers remember between ticks (and between restarts)
lives in these models.  Defaults are applied once, when the JSON file is
validated at load time; pollers read fields directly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tornwatch._constants import (
    DEFAULT_ADDICTION_THRESHOLD,
    DEFAULT_CHAIN_MIN,
    DEFAULT_CHAIN_THRESHOLDS,
    DEFAULT_OFFLINE_HOURS,
)
from tornwatch.models.kinds import BarKind, CooldownKind, IconKind
from tornwatch.models.profile import CoarseState
from tornwatch.normalize import safe_int
from tornwatch.travel import TravelInfo


def _descending_unique(values: Any) -> Any:
    if isinstance(values, (list, tuple, set)):
        parsed = (safe_int(v) for v in values)
        return sorted({v for v in parsed if v is not None and v > 0}, reverse=True)
    return values


class StateModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ---------------------------------------------------------------------------
# Users and faction members
# ---------------------------------------------------------------------------


class TrackedUser(StateModel):
    """A player the operator follows."""

    id: str
    name: str = ""
    states: list[CoarseState] = Field(default_factory=CoarseState.trackable)
    enabled: bool = True
    last_state: CoarseState | None = None
    """``None`` until the first successful poll records a baseline."""
    travel: TravelInfo | None = None
    pre_fired: dict[str, set[int]] = Field(default_factory=dict)
    """Session key -> thresholds already notified for that episode."""
    pre_times_sec: list[int] = Field(default_factory=list)
    last_check: int | None = None

    _sort_pre_times = field_validator("pre_times_sec", mode="before")(_descending_unique)

    def watches(self, state: CoarseState) -> bool:
        return state in self.states


class MemberCache(StateModel):
    """What we last saw of one faction member."""

    name: str = ""
    last_state: CoarseState | None = None
    last_action_ts: int | None = None
    travel: TravelInfo | None = None
    pre_fired: dict[str, set[int]] = Field(default_factory=dict)
    offline_notified: bool = False


class OfflineSettings(StateModel):
    enabled: bool = True
    hours: int = DEFAULT_OFFLINE_HOURS


class DailySettings(StateModel):
    enabled: bool = True
    respect_at_midnight: int | None = None


class TrackedFaction(StateModel):
    id: str
    name: str = ""
    tag: str = ""
    states: list[CoarseState] = Field(default_factory=CoarseState.trackable)
    enabled: bool = True
    pre_times_sec: list[int] = Field(default_factory=list)
    members: dict[str, MemberCache] = Field(default_factory=dict)
    offline: OfflineSettings = Field(default_factory=OfflineSettings)
    daily: DailySettings = Field(default_factory=DailySettings)
    last_respect: int | None = None
    last_respect_step: int | None = None
    last_check: int | None = None

    _sort_pre_times = field_validator("pre_times_sec", mode="before")(_descending_unique)

    def watches(self, state: CoarseState) -> bool:
        return state in self.states

    @property
    def label(self) -> str:
        return self.name or f"Faction {self.id}"


# ---------------------------------------------------------------------------
# Self tracking
# ---------------------------------------------------------------------------


class BarTracking(StateModel):
    enabled: bool = False
    current: int | None = None
    maximum: int | None = None
    was_full: bool = False


class CooldownTracking(StateModel):
    enabled: bool = False
    until: int | None = None
    """Expiry of the matching icon while the cooldown is running."""
    description: str = ""
    was_ready: bool = True


class IconSnapshot(StateModel):
    id: int
    until: int | None = None
    description: str = ""
    checked_at: int | None = None


class IconTracking(StateModel):
    enabled: bool = False
    last: IconSnapshot | None = None
    notified: bool = False


class ChainTracking(StateModel):
    enabled: bool = False
    min: int = DEFAULT_CHAIN_MIN
    thresholds: list[int] = Field(default_factory=lambda: list(DEFAULT_CHAIN_THRESHOLDS))
    epoch_id: int = 0
    fired: dict[int, set[int]] = Field(default_factory=dict)
    """Epoch id -> thresholds already notified in that epoch."""
    last_current: int = 0
    last_timeout: int | None = None
    updated_at: int | None = None

    _sort_thresholds = field_validator("thresholds", mode="before")(_descending_unique)


class AddictionTracking(StateModel):
    enabled: bool = False
    threshold: int = DEFAULT_ADDICTION_THRESHOLD
    last: int | None = None
    notified: bool = False


class SelfTrackingState(StateModel):
    """The operator's own account: bars, cooldowns, chain, icons, addiction."""

    bars: dict[BarKind, BarTracking] = Field(default_factory=dict)
    cooldowns: dict[CooldownKind, CooldownTracking] = Field(default_factory=dict)
    chain: ChainTracking = Field(default_factory=ChainTracking)
    icons: dict[IconKind, IconTracking] = Field(default_factory=dict)
    addiction: AddictionTracking = Field(default_factory=AddictionTracking)

    @model_validator(mode="after")
    def _fill_every_kind(self) -> SelfTrackingState:
        for bar in BarKind:
            self.bars.setdefault(bar, BarTracking())
        for cooldown in CooldownKind:
            self.cooldowns.setdefault(cooldown, CooldownTracking())
        for icon in IconKind:
            self.icons.setdefault(icon, IconTracking())
        return self

    @property
    def bars_enabled(self) -> bool:
        return any(bar.enabled for bar in self.bars.values())

    @property
    def icons_enabled(self) -> bool:
        """Whether the icon feed has a consumer (cooldowns or trackable icons)."""
        return any(cd.enabled for cd in self.cooldowns.values()) or any(i.enabled for i in self.icons.values())


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

STATE_VERSION = 3


class TrackerState(StateModel):
    version: int = STATE_VERSION
    owner_id: int | None = None
    users: dict[str, TrackedUser] = Field(default_factory=dict)
    factions: dict[str, TrackedFaction] = Field(default_factory=dict)
    self_tracking: SelfTrackingState = Field(default_factory=SelfTrackingState)
