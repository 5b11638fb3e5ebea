"""Player profile models."""

from __future__ import annotations

import re
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from tornwatch.exceptions import TornInputError
from tornwatch.models._base import TornBaseModel, TornEnum
from tornwatch.normalize import normalize_timestamp_seconds


class CoarseState(TornEnum):
    """Top-level account condition reported in ``status.state``."""

    TRAVELING = "Traveling"
    ABROAD = "Abroad"
    JAIL = "Jail"
    HOSPITAL = "Hospital"
    OKAY = "Okay"
    UNKNOWN = "Unknown"

    @classmethod
    def trackable(cls) -> list[CoarseState]:
        """States an operator can subscribe to, in display order."""
        return [state for state in cls if state is not cls.UNKNOWN]

    @property
    def is_timed(self) -> bool:
        """Whether the state carries a release timestamp."""
        return self in (CoarseState.JAIL, CoarseState.HOSPITAL)


_STATE_SPLIT = re.compile(r"[,\s|]+")
_ALL_WORDS = frozenset({"all", "*", "any"})
_NONE_WORDS = frozenset({"none", "-", "off", "false", "0"})


def parse_states(text: str | None) -> list[CoarseState]:
    """Parse an operator's state list with prefix matching.

    Empty input and ``all`` select every trackable state, ``none``
    selects nothing.  ``"trav, hosp"`` gives ``[TRAVELING, HOSPITAL]``.

    Raises
    ------
    TornInputError
        If a token does not prefix-match any state.
    """
    if text is None or not text.strip():
        return CoarseState.trackable()

    value = text.strip().lower()
    if value in _ALL_WORDS:
        return CoarseState.trackable()
    if value in _NONE_WORDS:
        return []

    parsed: list[CoarseState] = []
    for part in _STATE_SPLIT.split(value):
        if not part:
            continue
        match = next((s for s in CoarseState.trackable() if s.value.lower().startswith(part)), None)
        if match is None:
            valid = ", ".join(s.value for s in CoarseState.trackable())
            raise TornInputError(f'Unknown state: "{part}". Valid: {valid}')
        if match not in parsed:
            parsed.append(match)
    return parsed


class Status(TornBaseModel):
    """The ``status`` block shared by profiles and faction members."""

    state: CoarseState = CoarseState.UNKNOWN
    description: str = ""
    details: str = ""
    until: int | None = None
    """Unix seconds when a timed state (jail, hospital) ends."""
    travel_type: str | None = None
    color: str | None = None

    @field_validator("until", mode="before")
    @classmethod
    def _zero_until_is_none(cls, value: Any) -> int | None:
        return normalize_timestamp_seconds(value)


class LastAction(TornBaseModel):
    status: str = ""
    timestamp: int | None = None
    relative: str = ""

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> int | None:
        return normalize_timestamp_seconds(value)


class Profile(TornBaseModel):
    """A player's basic profile (``/v2/user/{id}/basic``)."""

    id: int = Field(validation_alias=AliasChoices("id", "player_id", "ID"))
    name: str = ""
    level: int | None = None
    status: Status = Field(default_factory=Status)
    last_action: LastAction | None = None
