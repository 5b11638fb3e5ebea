"""Icon badge feed (``/v2/user/icons``)."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import field_validator

from tornwatch.models._base import TornBaseModel
from tornwatch.normalize import normalize_timestamp_seconds, safe_int


class Icon(TornBaseModel):
    id: int
    title: str = ""
    description: str = ""
    until: int | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # v1 keys look like "icon17"
        if isinstance(value, str) and value.lower().startswith("icon"):
            value = value[4:]
        return safe_int(value)

    @field_validator("until", mode="before")
    @classmethod
    def _zero_until_is_none(cls, value: Any) -> int | None:
        return normalize_timestamp_seconds(value)


class IconFeed:
    """The set of currently active badges, keyed by icon id."""

    def __init__(self, icons: Iterable[Icon]) -> None:
        self._icons: dict[int, Icon] = {icon.id: icon for icon in icons}

    def __contains__(self, icon_id: object) -> bool:
        return icon_id in self._icons

    def __len__(self) -> int:
        return len(self._icons)

    def get(self, icon_id: int) -> Icon | None:
        return self._icons.get(icon_id)

    def first_of(self, icon_ids: Iterable[int]) -> Icon | None:
        """Return the first present icon among ``icon_ids``."""
        for icon_id in icon_ids:
            icon = self._icons.get(icon_id)
            if icon is not None:
                return icon
        return None
