"""Notification records and their builders.

Pollers never format text themselves; they call one of the builders
below and hand the result to the dispatcher.  A :class:`Notification`
is sink-agnostic: the Discord sink renders it as an embed, the logging
sink as plain text.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field

from tornwatch import _constants as C
from tornwatch.models.bars import Bar, Chain
from tornwatch.models.icons import Icon
from tornwatch.models.kinds import BarKind, CooldownKind, IconKind
from tornwatch.models.profile import CoarseState, Status
from tornwatch.timeutil import format_duration, relative_time
from tornwatch.travel import TravelInfo, describe_destination


class NotificationKind(enum.StrEnum):
    STATE_CHANGE = "state_change"
    TRAVEL_UPDATE = "travel_update"
    PRE_ALERT = "pre_alert"
    FACTION_JOIN = "faction_join"
    FACTION_LEAVE = "faction_leave"
    FACTION_MEMBER_STATE = "faction_member_state"
    FACTION_OFFLINE = "faction_offline"
    FACTION_MILESTONE = "faction_milestone"
    FACTION_DAILY = "faction_daily"
    BAR_FULL = "bar_full"
    COOLDOWN_READY = "cooldown_ready"
    ICON_STARTED = "icon_started"
    ICON_ENDED = "icon_ended"
    RACING_FINISHED = "racing_finished"
    CHAIN_ALERT = "chain_alert"
    ADDICTION_ALERT = "addiction_alert"
    ADDICTION_RECOVERED = "addiction_recovered"

    @property
    def color(self) -> int:
        return _KIND_COLORS.get(self, _BRAND)


_BRAND = 0x5865F2
_WARN = 0xFEE75C
_DANGER = 0xED4245
_GOOD = 0x57F287

_KIND_COLORS: dict[NotificationKind, int] = {
    NotificationKind.PRE_ALERT: _WARN,
    NotificationKind.FACTION_LEAVE: _DANGER,
    NotificationKind.FACTION_OFFLINE: _WARN,
    NotificationKind.BAR_FULL: _GOOD,
    NotificationKind.COOLDOWN_READY: _GOOD,
    NotificationKind.CHAIN_ALERT: _DANGER,
    NotificationKind.ADDICTION_ALERT: _DANGER,
    NotificationKind.ADDICTION_RECOVERED: _GOOD,
}

_STATE_COLORS: dict[CoarseState, int] = {
    CoarseState.OKAY: _GOOD,
    CoarseState.HOSPITAL: _DANGER,
    CoarseState.JAIL: 0x99AAB5,
    CoarseState.TRAVELING: 0x3498DB,
    CoarseState.ABROAD: 0x9B59B6,
}


class Notification(BaseModel):
    """One message addressed to the operator."""

    model_config = ConfigDict(frozen=True)

    kind: NotificationKind
    title: str
    description: str = ""
    url: str | None = None
    fields: dict[str, str] = Field(default_factory=dict)
    subject: str = ""
    """Id of the entity the message is about (player, faction or kind)."""
    color: int | None = None

    def render_text(self) -> str:
        lines = [self.title]
        if self.description:
            lines.append(self.description)
        lines.extend(f"{name}: {value}" for name, value in self.fields.items())
        if self.url:
            lines.append(self.url)
        return "\n".join(lines)

    def to_embed(self) -> dict[str, object]:
        """Discord embed payload."""
        embed: dict[str, object] = {
            "title": self.title[:256],
            "color": self.color if self.color is not None else self.kind.color,
        }
        if self.description:
            embed["description"] = self.description[:4096]
        if self.url:
            embed["url"] = self.url
        if self.fields:
            embed["fields"] = [{"name": name, "value": value, "inline": True} for name, value in self.fields.items()]
        return embed


# ---------------------------------------------------------------------------
# Players and faction members
# ---------------------------------------------------------------------------


def _state_lines(state: CoarseState, status: Status, travel: TravelInfo | None, now: int) -> list[str]:
    lines: list[str] = []
    if status.description:
        lines.append(f"> {status.description}")
    if state is CoarseState.TRAVELING and travel is not None and travel.eta is not None:
        lines.append(describe_destination(travel))
        lines.append(f"ETA: {relative_time(travel.eta, now)}")
    elif state is CoarseState.JAIL and status.until:
        lines.append(f"Released: {relative_time(status.until, now)}")
    elif state is CoarseState.HOSPITAL and status.until:
        lines.append(f"Discharged: {relative_time(status.until, now)}")
    return lines


def state_change(
    user_id: str,
    name: str,
    old: CoarseState | None,
    new: CoarseState,
    status: Status,
    travel: TravelInfo | None,
    now: int,
) -> Notification:
    return Notification(
        kind=NotificationKind.STATE_CHANGE,
        title=f"{name} -> {new.value}",
        description="\n".join(_state_lines(new, status, travel, now)),
        url=C.profile_link(user_id),
        fields={"Previous": old.value if old else CoarseState.UNKNOWN.value},
        subject=str(user_id),
        color=_STATE_COLORS.get(new),
    )


def travel_update(user_id: str, name: str, status: Status, travel: TravelInfo | None, now: int) -> Notification:
    """Same flight state, but the destination or direction changed."""
    return Notification(
        kind=NotificationKind.TRAVEL_UPDATE,
        title=f"{name} -> {describe_destination(travel)}",
        description="\n".join(_state_lines(CoarseState.TRAVELING, status, travel, now)),
        url=C.profile_link(user_id),
        subject=str(user_id),
        color=_STATE_COLORS[CoarseState.TRAVELING],
    )


def pre_alert(user_id: str, name: str, state: CoarseState, end_at: int, left: int) -> Notification:
    return Notification(
        kind=NotificationKind.PRE_ALERT,
        title=f"{name} - {state.value} ending soon!",
        description=f"Time left: ~{format_duration(left)}",
        url=C.profile_link(user_id),
        fields={"Ends at": str(end_at)},
        subject=str(user_id),
    )


# ---------------------------------------------------------------------------
# Factions
# ---------------------------------------------------------------------------


def faction_join(faction_name: str, faction_id: str, member_id: str, member_name: str) -> Notification:
    return Notification(
        kind=NotificationKind.FACTION_JOIN,
        title=f"{member_name} joined {faction_name}",
        url=C.profile_link(member_id),
        fields={"Faction": f"{faction_name} [{faction_id}]"},
        subject=str(member_id),
    )


def faction_leave(faction_name: str, faction_id: str, member_id: str, member_name: str) -> Notification:
    return Notification(
        kind=NotificationKind.FACTION_LEAVE,
        title=f"{member_name} left {faction_name}",
        url=C.faction_link(faction_id),
        fields={"Faction": f"{faction_name} [{faction_id}]"},
        subject=str(member_id),
    )


def faction_member_state(
    faction_name: str,
    member_id: str,
    member_name: str,
    old: CoarseState | None,
    new: CoarseState,
    status: Status,
    travel: TravelInfo | None,
    now: int,
) -> Notification:
    return Notification(
        kind=NotificationKind.FACTION_MEMBER_STATE,
        title=f"{member_name} ({faction_name}) -> {new.value}",
        description="\n".join(_state_lines(new, status, travel, now)),
        url=C.profile_link(member_id),
        fields={"Previous": old.value if old else CoarseState.UNKNOWN.value},
        subject=str(member_id),
        color=_STATE_COLORS.get(new),
    )


def faction_offline(
    faction_name: str,
    member_id: str,
    member_name: str,
    last_action_ts: int,
    hours: int,
    now: int,
) -> Notification:
    return Notification(
        kind=NotificationKind.FACTION_OFFLINE,
        title=f"{member_name} ({faction_name}) offline {hours}h+",
        description=f"Last action: {relative_time(last_action_ts, now)}",
        url=C.profile_link(member_id),
        subject=str(member_id),
    )


def faction_milestone(faction_name: str, faction_id: str, respect: int) -> Notification:
    return Notification(
        kind=NotificationKind.FACTION_MILESTONE,
        title=f"{faction_name} reached {respect:,} respect",
        url=C.faction_link(faction_id),
        subject=str(faction_id),
    )


def faction_daily(faction_name: str, faction_id: str, delta: int, respect: int) -> Notification:
    sign = "+" if delta >= 0 else ""
    return Notification(
        kind=NotificationKind.FACTION_DAILY,
        title=f"{faction_name} daily respect: {sign}{delta:,}",
        fields={"Total": f"{respect:,}"},
        url=C.faction_link(faction_id),
        subject=str(faction_id),
    )


# ---------------------------------------------------------------------------
# Self tracking
# ---------------------------------------------------------------------------


def bar_full(kind: BarKind, bar: Bar) -> Notification:
    info = kind.info
    return Notification(
        kind=NotificationKind.BAR_FULL,
        title=f"{info.title} is full!",
        description=f"{bar.current}/{bar.maximum}. {info.action}",
        url=info.link,
        subject=kind.value,
    )


def cooldown_ready(kind: CooldownKind) -> Notification:
    info = kind.info
    return Notification(
        kind=NotificationKind.COOLDOWN_READY,
        title=f"{info.title} cooldown ready!",
        description=info.action,
        url=info.link,
        subject=kind.value,
    )


def icon_started(kind: IconKind, icon: Icon, now: int) -> Notification:
    info = kind.info
    lines = [icon.description] if icon.description else []
    if icon.until:
        lines.append(f"Ends: {relative_time(icon.until, now)}")
    return Notification(
        kind=NotificationKind.ICON_STARTED,
        title=f"{info.title} started",
        description="\n".join(lines),
        url=info.link,
        subject=kind.value,
    )


def icon_ended(kind: IconKind) -> Notification:
    info = kind.info
    return Notification(
        kind=NotificationKind.ICON_ENDED,
        title=f"{info.title} ended",
        description=info.action,
        url=info.link,
        subject=kind.value,
    )


def racing_finished(icon: Icon) -> Notification:
    info = IconKind.RACING.info
    return Notification(
        kind=NotificationKind.RACING_FINISHED,
        title="Race finished!",
        description=icon.description or info.action,
        url=info.link,
        subject=IconKind.RACING.value,
    )


def chain_alert(chain: Chain, threshold: int) -> Notification:
    return Notification(
        kind=NotificationKind.CHAIN_ALERT,
        title=f"Chain timeout under {format_duration(threshold)}!",
        description=f"Chain {chain.current}: {format_duration(chain.timeout)} left",
        url=C.LINK_FACTION_MAIN,
        subject=str(threshold),
    )


def addiction_alert(value: int, threshold: int) -> Notification:
    return Notification(
        kind=NotificationKind.ADDICTION_ALERT,
        title=f"Addiction at {value}",
        description=f"At or below your threshold of {threshold}. Time to rehab.",
        url="https://www.torn.com/companies.php",
        subject="addiction",
    )


def addiction_recovered(value: int, threshold: int) -> Notification:
    return Notification(
        kind=NotificationKind.ADDICTION_RECOVERED,
        title=f"Addiction recovered to {value}",
        description=f"Back above your threshold of {threshold}.",
        subject="addiction",
    )
