"""Data models for Torn API responses."""

from tornwatch.models._base import TornBaseModel, TornEnum
from tornwatch.models.bars import Bar, Bars, Chain
from tornwatch.models.company import CompanyEmployee, Effectiveness
from tornwatch.models.faction import Faction, FactionMember
from tornwatch.models.icons import Icon, IconFeed
from tornwatch.models.kinds import BarKind, CooldownKind, IconKind
from tornwatch.models.profile import CoarseState, LastAction, Profile, Status, parse_states

__all__ = [
    "Bar",
    "BarKind",
    "Bars",
    "Chain",
    "CoarseState",
    "CompanyEmployee",
    "CooldownKind",
    "Effectiveness",
    "Faction",
    "FactionMember",
    "Icon",
    "IconFeed",
    "IconKind",
    "LastAction",
    "Profile",
    "Status",
    "TornBaseModel",
    "TornEnum",
    "parse_states",
]
