"""Personal bars and chain (``/user/?selections=bars``)."""

from __future__ import annotations

from tornwatch.models._base import TornBaseModel
from tornwatch.models.kinds import BarKind


class Bar(TornBaseModel):
    current: int = 0
    maximum: int = 0
    increment: int | None = None
    interval: int | None = None
    ticktime: int | None = None
    fulltime: int | None = None

    @property
    def is_full(self) -> bool:
        return self.maximum > 0 and self.current >= self.maximum


class Chain(TornBaseModel):
    current: int = 0
    maximum: int = 0
    timeout: int = 0
    """Seconds until the chain breaks; ``0`` when no chain is running."""
    modifier: float | None = None
    cooldown: int = 0


class Bars(TornBaseModel):
    energy: Bar | None = None
    nerve: Bar | None = None
    happy: Bar | None = None
    life: Bar | None = None
    chain: Chain | None = None
    server_time: int | None = None

    def bar(self, kind: BarKind) -> Bar | None:
        bar: Bar | None = getattr(self, kind.value)
        return bar
