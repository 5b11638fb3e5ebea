"""Base model and enum for Torn API responses.

Every Torn response model inherits from :class:`TornBaseModel` which
provides:

* A ``model_validator(mode="before")`` that strips sentinel values
  (``""``, ``None``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload.

String-valued state enums inherit from :class:`TornEnum` which adds an
``UNKNOWN`` member and a ``_missing_`` hook that returns it for values
without a mapped member.
"""

from __future__ import annotations

import enum
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

_SENTINELS = frozenset({"", "N/A"})


class TornEnum(enum.StrEnum):
    """Base for Torn API string enums.

    Every subclass **must** define ``UNKNOWN``.  Matching is
    case-insensitive; anything else resolves to ``UNKNOWN`` instead of
    raising ``ValueError``.
    """

    @classmethod
    def _missing_(cls, value: object) -> TornEnum:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        unknown: TornEnum = cls["UNKNOWN"]
        return unknown


class TornBaseModel(BaseModel):
    """Base for Torn API response models.

    Handles:
    * sentinel values (``""``, ``"N/A"``, ``None``, NaN) -> dropped so
      the field default is used instead
    * stashes the original API dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
    """Original API response dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_torn_values(cls, values: Any) -> Any:
        """Strip sentinel values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = TornBaseModel._clean_dict(values)
        # Keep an explicitly passed raw= (constructing from kwargs).
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
