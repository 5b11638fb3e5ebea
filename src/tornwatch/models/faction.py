"""Faction models (``/faction/{id}?selections=basic``)."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from tornwatch.models._base import TornBaseModel
from tornwatch.models.profile import LastAction, Status
from tornwatch.normalize import safe_int


class FactionMember(TornBaseModel):
    name: str = ""
    level: int | None = None
    days_in_faction: int | None = None
    position: str = ""
    status: Status = Field(default_factory=Status)
    last_action: LastAction = Field(default_factory=LastAction)


class Faction(TornBaseModel):
    """A faction with its member roster keyed by player id."""

    id: int | None = Field(default=None, validation_alias=AliasChoices("ID", "id"))
    name: str = ""
    tag: str = ""
    respect: int = 0
    members: dict[str, FactionMember] = Field(default_factory=dict)

    @field_validator("respect", mode="before")
    @classmethod
    def _coerce_respect(cls, value: Any) -> int:
        return safe_int(value) or 0

    @field_validator("members", mode="before")
    @classmethod
    def _stringify_member_ids(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(key): member for key, member in value.items()}
        if isinstance(value, list):
            # v2 shape: a list of members carrying their own id.
            return {str(member.get("id")): member for member in value if isinstance(member, dict)}
        return value
