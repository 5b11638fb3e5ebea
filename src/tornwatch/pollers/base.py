"""What every poller needs: the store, the API, a notifier and a clock."""

from __future__ import annotations

import dataclasses
import time
from collections.abc import Callable
from typing import Protocol

from tornwatch.models.bars import Bars
from tornwatch.models.company import CompanyEmployee
from tornwatch.models.faction import Faction
from tornwatch.models.icons import IconFeed
from tornwatch.models.profile import Profile
from tornwatch.notify.dispatcher import Notifier
from tornwatch.state.store import StateStore


class TornApi(Protocol):
    """The subset of :class:`tornwatch.client.TornClient` pollers call."""

    async def get_profile(self, user_id: int | str) -> Profile:
        ...

    async def get_faction(self, faction_id: int | str) -> Faction:
        ...

    async def get_bars(self) -> Bars:
        ...

    async def get_icons(self) -> IconFeed:
        ...

    async def get_company_employees(self) -> dict[str, CompanyEmployee]:
        ...


@dataclasses.dataclass
class PollContext:
    """Shared collaborators passed to every poll function.

    ``clock`` returns unix seconds as a float; tests inject a fake one.
    """

    store: StateStore
    client: TornApi
    notifier: Notifier
    clock: Callable[[], float] = time.time

    def now(self) -> int:
        return int(self.clock())

    def now_ms(self) -> int:
        return int(self.clock() * 1000)
