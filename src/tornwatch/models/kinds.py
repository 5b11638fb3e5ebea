"""Closed enumerations for the self-tracking categories.

Each member carries what its tracker needs (icon ids, titles, action
links) so pollers iterate the enum instead of looking up free-form keys.
"""

from __future__ import annotations

import dataclasses
import enum

from tornwatch import _constants as C


@dataclasses.dataclass(frozen=True)
class _KindInfo:
    title: str
    action: str
    link: str
    icon_ids: tuple[int, ...] = ()


class BarKind(enum.StrEnum):
    ENERGY = "energy"
    NERVE = "nerve"
    HAPPY = "happy"
    LIFE = "life"

    @property
    def info(self) -> _KindInfo:
        return _BAR_INFO[self]


class CooldownKind(enum.StrEnum):
    DRUG = "drug"
    MEDICAL = "medical"
    BOOSTER = "booster"
    ALCOHOL = "alcohol"

    @property
    def info(self) -> _KindInfo:
        return _COOLDOWN_INFO[self]

    @property
    def icon_ids(self) -> tuple[int, ...]:
        """Any of these ids in the icon feed means the cooldown is running."""
        return self.info.icon_ids


class IconKind(enum.StrEnum):
    RACING = "racing"
    ORGANIZED_CRIME = "oc"
    BANK = "bank"
    EDUCATION = "education"
    DONATOR = "donator"

    @property
    def info(self) -> _KindInfo:
        return _ICON_INFO[self]

    @property
    def icon_ids(self) -> tuple[int, ...]:
        return self.info.icon_ids


_BAR_INFO: dict[BarKind, _KindInfo] = {
    BarKind.ENERGY: _KindInfo("Energy", "Hit the gym!", C.LINK_GYM),
    BarKind.NERVE: _KindInfo("Nerve", "Commit some crimes!", C.LINK_CRIMES),
    BarKind.HAPPY: _KindInfo("Happy", "Time to boost!", C.LINK_DRUGS),
    BarKind.LIFE: _KindInfo("Life", "You're at full health!", C.LINK_HOME),
}

_COOLDOWN_INFO: dict[CooldownKind, _KindInfo] = {
    CooldownKind.DRUG: _KindInfo("Drug", "Take some drugs!", C.LINK_DRUGS, C.ICON_DRUG_COOLDOWN),
    CooldownKind.MEDICAL: _KindInfo("Medical", "Use faction medical!", C.LINK_MEDICAL, C.ICON_MEDICAL_COOLDOWN),
    CooldownKind.BOOSTER: _KindInfo("Booster", "Use a booster!", C.LINK_BOOSTERS, C.ICON_BOOSTER_COOLDOWN),
    CooldownKind.ALCOHOL: _KindInfo("Alcohol", "Have a drink!", C.LINK_ALCOHOL, C.ICON_ALCOHOL_COOLDOWN),
}

_ICON_INFO: dict[IconKind, _KindInfo] = {
    IconKind.RACING: _KindInfo(
        "Racing",
        "Check your race",
        "https://www.torn.com/loader.php?sid=racing",
        (C.ICON_RACING_ACTIVE, C.ICON_RACING_FINISHED),
    ),
    IconKind.ORGANIZED_CRIME: _KindInfo(
        "Organized Crime", "Check your crime", C.LINK_FACTION_MAIN, C.ICON_ORGANIZED_CRIME
    ),
    IconKind.BANK: _KindInfo(
        "Bank Investment", "Visit the bank", "https://www.torn.com/bank.php", (C.ICON_BANK_INVESTMENT,)
    ),
    IconKind.EDUCATION: _KindInfo(
        "Education", "Pick your next course", "https://www.torn.com/education.php", (C.ICON_EDUCATION,)
    ),
    IconKind.DONATOR: _KindInfo(
        "Donator", "Renew donator status", "https://www.torn.com/donator.php", (C.ICON_DONATOR,)
    ),
}
