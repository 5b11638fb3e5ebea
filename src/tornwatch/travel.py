"""Travel arrival estimation.

The API only says *that* someone is traveling and *where*, not when the
flight took off.  We record the wall-clock time the state was first
observed and derive an arrival window from the known route durations,
padded on both sides to absorb polling latency.
"""

from __future__ import annotations

import math
import re

from pydantic import BaseModel, ConfigDict, model_validator

from tornwatch._constants import DESTINATIONS, TRAVEL_PAD, TRAVEL_TIMES
from tornwatch.models._base import TornEnum
from tornwatch.models.profile import Status


class TravelType(TornEnum):
    """Route class as reported in ``status.travel_type``.

    ``STANDARD`` is either economy or business; the API does not say
    which, so estimates span both.
    """

    STANDARD = "standard"
    BUSINESS = "business"
    AIRSTRIP = "airstrip"
    PRIVATE = "private"
    UNKNOWN = "unknown"


class TravelDirection(TornEnum):
    OUTBOUND = "outbound"
    RETURN = "return"
    UNKNOWN = "unknown"


_DESTINATION = re.compile(r"^.*\b(?:from|to)\s+([A-Za-z\s-]+)$", re.IGNORECASE)
_RETURNING = re.compile(r"returning|from\s+\w", re.IGNORECASE)
_STRIP_PUNCT = re.compile(r"[^\w\s-]")


class TravelInfo(BaseModel):
    """One observed flight and its estimated arrival window.

    ``earliest``/``latest`` are unix seconds; both are ``None`` when the
    destination or route class could not be resolved.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    started_at: int
    """Wall-clock milliseconds when the flight was first observed."""
    type: TravelType = TravelType.STANDARD
    destination: str | None = None
    direction: TravelDirection = TravelDirection.OUTBOUND
    earliest: int | None = None
    latest: int | None = None

    @model_validator(mode="after")
    def _check_window(self) -> TravelInfo:
        if (self.earliest is None) != (self.latest is None):
            raise ValueError("earliest and latest must both be set or both be None")
        if self.earliest is not None and self.latest is not None and self.earliest > self.latest:
            raise ValueError("earliest must not be after latest")
        return self

    @property
    def has_estimate(self) -> bool:
        return self.earliest is not None

    @property
    def eta(self) -> int | None:
        """Midpoint of the arrival window."""
        if self.earliest is None or self.latest is None:
            return None
        return (self.earliest + self.latest) // 2

    def delayed(self, seconds: int) -> TravelInfo:
        """Return a copy with both bounds shifted by ``seconds``.

        Used when the operator knows a flight was booked later than it was
        observed.  An unknown window stays unknown.
        """
        if self.earliest is None or self.latest is None:
            return self
        return self.model_copy(update={"earliest": self.earliest + seconds, "latest": self.latest + seconds})


def _destination_index(destination: str | None) -> int | None:
    if not destination:
        return None
    lowered = destination.lower()
    for idx, known in enumerate(DESTINATIONS):
        if known.lower() == lowered:
            return idx
    return None


def travel_time(route: str, destination: str | None) -> int | None:
    """One-way duration in seconds for a route table key and destination."""
    idx = _destination_index(destination)
    table = TRAVEL_TIMES.get(route)
    if idx is None or table is None:
        return None
    return table[idx]


def estimate_travel(
    travel_type: TravelType,
    destination: str | None,
    started_at_ms: int,
) -> tuple[int | None, int | None]:
    """Estimate ``(earliest, latest)`` arrival in unix seconds.

    Returns ``(None, None)`` when the destination or class is unknown.
    """
    start = started_at_ms // 1000
    if travel_type is TravelType.STANDARD:
        economy = travel_time("standard_economy", destination)
        business = travel_time("standard_business", destination)
        if economy is None or business is None:
            return None, None
        shortest, longest = min(economy, business), max(economy, business)
    else:
        route = {
            TravelType.BUSINESS: "standard_business",
            TravelType.AIRSTRIP: "airstrip",
            TravelType.PRIVATE: "private",
        }.get(travel_type)
        seconds = travel_time(route, destination) if route else None
        if seconds is None:
            return None, None
        shortest = longest = seconds

    return (
        math.floor(start + shortest * (1 - TRAVEL_PAD)),
        math.floor(start + longest * (1 + TRAVEL_PAD)),
    )


def parse_destination(description: str | None) -> str | None:
    """Extract the destination from ``"Traveling to X"`` / ``"Returning to Torn from X"``.

    Known destinations are returned with canonical casing, anything else
    as the cleaned raw text.
    """
    if not description:
        return None
    match = _DESTINATION.search(description.strip())
    if not match:
        return None
    raw = _STRIP_PUNCT.sub("", match.group(1)).strip()
    if not raw:
        return None
    idx = _destination_index(raw)
    return DESTINATIONS[idx] if idx is not None else raw


def parse_direction(description: str | None) -> TravelDirection:
    if description and _RETURNING.search(description):
        return TravelDirection.RETURN
    return TravelDirection.OUTBOUND


def infer_travel_type(status: Status) -> TravelType:
    if not status.travel_type:
        return TravelType.STANDARD
    return TravelType(status.travel_type.strip().lower())


def create_travel_info(status: Status, now_ms: int) -> TravelInfo:
    """Build travel info for a flight first observed at ``now_ms``."""
    destination = parse_destination(status.description)
    travel_type = infer_travel_type(status)
    earliest, latest = estimate_travel(travel_type, destination, now_ms)
    return TravelInfo(
        started_at=now_ms,
        type=travel_type,
        destination=destination,
        direction=parse_direction(status.description),
        earliest=earliest,
        latest=latest,
    )


def has_drifted(travel: TravelInfo, status: Status) -> bool:
    """Whether the status text now points at another destination or direction."""
    return (
        parse_direction(status.description) != travel.direction
        or parse_destination(status.description) != travel.destination
    )


def describe_destination(travel: TravelInfo | None) -> str:
    if travel is None or not travel.destination:
        return "Unknown"
    if travel.direction is TravelDirection.RETURN:
        return f"Returning from {travel.destination}"
    return f"Flying to {travel.destination}"
