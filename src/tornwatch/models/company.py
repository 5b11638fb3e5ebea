"""Company employee models (``/company/?selections=employees``)."""

from __future__ import annotations

from pydantic import Field

from tornwatch.models._base import TornBaseModel


class Effectiveness(TornBaseModel):
    working_stats: int | None = None
    settled_in: int | None = None
    merits: int | None = None
    addiction: int = 0
    inactivity: int | None = None
    total: int | None = None


class CompanyEmployee(TornBaseModel):
    name: str = ""
    position: str = ""
    days_in_company: int | None = None
    effectiveness: Effectiveness = Field(default_factory=Effectiveness)
