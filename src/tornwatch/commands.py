"""Operator operations: track, untrack, toggle and tune.

Every method runs on the event loop that drives the pollers, so a
command and a poll tick never interleave their mutations.  Invalid
input raises :class:`~tornwatch.exceptions.TornInputError` for the
caller to report; nothing is changed in that case.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable
from typing import TypeVar

from tornwatch._constants import DEFAULT_OFFLINE_HOURS, RESPECT_MILESTONE_STEP
from tornwatch.exceptions import TornInputError
from tornwatch.models.kinds import BarKind, CooldownKind, IconKind
from tornwatch.models.profile import CoarseState, parse_states
from tornwatch.pollers.base import TornApi
from tornwatch.pollers.faction import seed_member
from tornwatch.pollers.scheduler import PollerManager
from tornwatch.state.models import (
    ChainTracking,
    OfflineSettings,
    TrackedFaction,
    TrackedUser,
)
from tornwatch.state.store import StateStore
from tornwatch.timeutil import parse_duration, parse_duration_list
from tornwatch.travel import TravelInfo, create_travel_info

_logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=enum.Enum)


def _normalize_id(value: int | str, what: str) -> str:
    text = str(value).strip()
    if not text.isdigit() or int(text) <= 0:
        raise TornInputError(f"Invalid {what} id: {value!r}")
    return str(int(text))


def _parse_kind(enum_cls: type[_E], value: str | _E) -> _E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(str(member.value) for member in enum_cls)
        raise TornInputError(f"Unknown {enum_cls.__name__}: {value!r}. Valid: {valid}") from None


class OperatorCommands:
    """Mutations requested by the operator.

    Parameters
    ----------
    store : StateStore
        The store to mutate.
    client : TornApi
        Used to establish baselines when something new is tracked.
    manager : PollerManager or None
        Refreshed after every change so pollers pick up new ids and
        start or stop with the features they serve.
    offline_hours : int
        Default offline threshold for newly tracked factions.
    clock : callable
        Unix seconds.
    """

    def __init__(
        self,
        store: StateStore,
        client: TornApi,
        manager: PollerManager | None = None,
        *,
        offline_hours: int = DEFAULT_OFFLINE_HOURS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._client = client
        self._manager = manager
        self._offline_hours = offline_hours
        self._clock = clock

    def _commit(self, reason: str) -> None:
        self._store.save(reason)
        if self._manager is not None:
            self._manager.refresh()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def _user(self, user_id: int | str) -> TrackedUser:
        uid = _normalize_id(user_id, "user")
        user = self._store.user(uid)
        if user is None:
            raise TornInputError(f"User {uid} is not tracked")
        return user

    async def track_user(
        self,
        user_id: int | str,
        states: str | None = None,
        warn: str | None = None,
    ) -> TrackedUser:
        """Start tracking a player.

        The profile is fetched first; its state becomes the silent
        baseline.  Fetch errors propagate and nothing is stored.
        """
        uid = _normalize_id(user_id, "user")
        if self._store.user(uid) is not None:
            raise TornInputError(f"User {uid} is already tracked")
        watched = parse_states(states)
        thresholds = parse_duration_list(warn)

        profile = await self._client.get_profile(uid)
        now_ms = int(self._clock() * 1000)
        state = profile.status.state
        user = TrackedUser(
            id=uid,
            name=profile.name,
            states=watched,
            pre_times_sec=thresholds,
            last_state=state,
            travel=create_travel_info(profile.status, now_ms) if state is CoarseState.TRAVELING else None,
            last_check=now_ms,
        )
        self._store.state.users[uid] = user
        _logger.info("Tracking user %s [%s] (%s)", user.name, uid, state.value)
        self._commit("track-user")
        return user

    def untrack_user(self, user_id: int | str) -> TrackedUser:
        user = self._user(user_id)
        del self._store.state.users[user.id]
        _logger.info("Untracked user %s [%s]", user.name, user.id)
        self._commit("untrack-user")
        return user

    def set_user_enabled(self, user_id: int | str, enabled: bool) -> TrackedUser:
        user = self._user(user_id)
        user.enabled = enabled
        self._commit("user-enabled")
        return user

    def set_user_states(self, user_id: int | str, states: str | None) -> TrackedUser:
        user = self._user(user_id)
        user.states = parse_states(states)
        self._commit("user-states")
        return user

    def set_user_warnings(self, user_id: int | str, warn: str | None) -> TrackedUser:
        user = self._user(user_id)
        user.pre_times_sec = parse_duration_list(warn)
        self._commit("user-warnings")
        return user

    def add_travel_delay(self, user_id: int | str, delay: str) -> TravelInfo:
        """Shift a tracked flight's arrival window by a duration like ``"5m"``."""
        user = self._user(user_id)
        seconds = parse_duration(delay)
        if seconds is None:
            raise TornInputError(f"Could not parse duration: {delay!r}")
        if user.last_state is not CoarseState.TRAVELING or user.travel is None:
            raise TornInputError(f"{user.name or user.id} is not traveling")
        if not user.travel.has_estimate:
            raise TornInputError(f"No arrival estimate for {user.name or user.id}")
        user.travel = user.travel.delayed(seconds)
        self._commit("travel-delay")
        return user.travel

    # ------------------------------------------------------------------
    # Factions
    # ------------------------------------------------------------------

    def _faction(self, faction_id: int | str) -> TrackedFaction:
        fid = _normalize_id(faction_id, "faction")
        faction = self._store.faction(fid)
        if faction is None:
            raise TornInputError(f"Faction {fid} is not tracked")
        return faction

    async def track_faction(
        self,
        faction_id: int | str,
        states: str | None = None,
        warn: str | None = None,
        offline_hours: int | None = None,
    ) -> TrackedFaction:
        """Start tracking a faction, seeding the member cache as a baseline."""
        fid = _normalize_id(faction_id, "faction")
        if self._store.faction(fid) is not None:
            raise TornInputError(f"Faction {fid} is already tracked")
        hours = self._offline_hours if offline_hours is None else offline_hours
        if hours <= 0:
            raise TornInputError("Offline hours must be positive")
        watched = parse_states(states)
        thresholds = parse_duration_list(warn)

        data = await self._client.get_faction(fid)
        now_ms = int(self._clock() * 1000)
        faction = TrackedFaction(
            id=fid,
            name=data.name,
            tag=data.tag,
            states=watched,
            pre_times_sec=thresholds,
            members={uid: seed_member(member, now_ms) for uid, member in data.members.items()},
            offline=OfflineSettings(hours=hours),
            last_respect=data.respect,
            last_respect_step=data.respect // RESPECT_MILESTONE_STEP,
            last_check=now_ms,
        )
        self._store.state.factions[fid] = faction
        _logger.info("Tracking faction %s [%s] (%d members)", faction.label, fid, len(faction.members))
        self._commit("track-faction")
        return faction

    def untrack_faction(self, faction_id: int | str) -> TrackedFaction:
        faction = self._faction(faction_id)
        del self._store.state.factions[faction.id]
        _logger.info("Untracked faction %s [%s]", faction.label, faction.id)
        self._commit("untrack-faction")
        return faction

    def set_faction_enabled(self, faction_id: int | str, enabled: bool) -> TrackedFaction:
        faction = self._faction(faction_id)
        faction.enabled = enabled
        self._commit("faction-enabled")
        return faction

    def set_faction_states(self, faction_id: int | str, states: str | None) -> TrackedFaction:
        faction = self._faction(faction_id)
        faction.states = parse_states(states)
        self._commit("faction-states")
        return faction

    def set_faction_warnings(self, faction_id: int | str, warn: str | None) -> TrackedFaction:
        faction = self._faction(faction_id)
        faction.pre_times_sec = parse_duration_list(warn)
        self._commit("faction-warnings")
        return faction

    def set_faction_offline(
        self,
        faction_id: int | str,
        enabled: bool,
        hours: int | None = None,
    ) -> TrackedFaction:
        faction = self._faction(faction_id)
        if hours is not None and hours <= 0:
            raise TornInputError("Offline hours must be positive")
        faction.offline.enabled = enabled
        if hours is not None:
            faction.offline.hours = hours
        if not enabled:
            for member in faction.members.values():
                member.offline_notified = False
        self._commit("faction-offline")
        return faction

    def set_faction_daily(self, faction_id: int | str, enabled: bool) -> TrackedFaction:
        faction = self._faction(faction_id)
        faction.daily.enabled = enabled
        self._commit("faction-daily")
        return faction

    # ------------------------------------------------------------------
    # Self tracking
    # ------------------------------------------------------------------

    def set_bar(self, kind: str | BarKind, enabled: bool) -> BarKind:
        bar = _parse_kind(BarKind, kind)
        tracking = self._store.state.self_tracking.bars[bar]
        tracking.enabled = enabled
        if not enabled:
            tracking.was_full = False
        self._commit("bar")
        return bar

    def set_cooldown(self, kind: str | CooldownKind, enabled: bool) -> CooldownKind:
        cooldown = _parse_kind(CooldownKind, kind)
        tracking = self._store.state.self_tracking.cooldowns[cooldown]
        tracking.enabled = enabled
        if not enabled:
            tracking.was_ready = True
            tracking.until = None
        self._commit("cooldown")
        return cooldown

    def set_icon(self, kind: str | IconKind, enabled: bool) -> IconKind:
        icon = _parse_kind(IconKind, kind)
        tracking = self._store.state.self_tracking.icons[icon]
        tracking.enabled = enabled
        if not enabled:
            tracking.notified = False
            tracking.last = None
        self._commit("icon")
        return icon

    def configure_chain(
        self,
        enabled: bool | None = None,
        min_hits: int | None = None,
        thresholds: str | None = None,
    ) -> ChainTracking:
        chain = self._store.state.self_tracking.chain
        if min_hits is not None:
            if min_hits < 0:
                raise TornInputError("Minimum chain length cannot be negative")
            chain.min = min_hits
        if thresholds is not None:
            parsed = parse_duration_list(thresholds)
            if not parsed:
                raise TornInputError(f"No valid chain thresholds in {thresholds!r}")
            chain.thresholds = parsed
        if enabled is not None:
            chain.enabled = enabled
        self._commit("chain")
        return chain

    def configure_addiction(self, enabled: bool | None = None, threshold: int | None = None) -> None:
        addiction = self._store.state.self_tracking.addiction
        if threshold is not None:
            addiction.threshold = threshold
            addiction.notified = False
        if enabled is not None:
            addiction.enabled = enabled
        self._commit("addiction")
