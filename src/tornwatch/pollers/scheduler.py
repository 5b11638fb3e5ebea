"""Timers that drive the pollers.

Every poller fires on a fixed cadence.  A tick that comes due while the
previous one is still in flight is skipped, so each poller has at most
one request outstanding.  Errors are logged per item and never stop the
timer.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from tornwatch.config import Intervals
from tornwatch.exceptions import TornDataError, TornError, TornRateLimitError
from tornwatch.pollers.bars import poll_bars
from tornwatch.pollers.base import PollContext
from tornwatch.pollers.chain import poll_chain
from tornwatch.pollers.company import poll_company
from tornwatch.pollers.faction import poll_faction, run_daily_digest, seconds_until_next_digest
from tornwatch.pollers.icons import poll_icons
from tornwatch.pollers.user import poll_user

_logger = logging.getLogger(__name__)


class _TimedPoller:
    """Fixed-cadence timer with an overlap guard."""

    def __init__(self, name: str, interval: float) -> None:
        self.name = name
        self.interval = interval
        self._ticking = False
        self._timer: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[Any] | None = None
        self.ticks = 0
        self.errors = 0

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def busy(self) -> bool:
        return self._ticking

    def start(self) -> None:
        self.stop()
        _logger.info("[%s] Starting @ %.1fs", self.name, self.interval)
        self._timer = asyncio.create_task(self._loop(), name=f"tornwatch-{self.name}")

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            _logger.info("[%s] Stopped", self.name)

    async def wait_idle(self) -> None:
        """Wait for a tick already in flight to finish."""
        if self._inflight is not None and not self._inflight.done():
            with contextlib.suppress(asyncio.CancelledError):
                await self._inflight

    async def _loop(self) -> None:
        while True:
            # Ticks run as their own tasks so a slow request never shifts
            # the cadence.  While one is still running the slot is skipped.
            if self._inflight is None or self._inflight.done():
                self._inflight = asyncio.create_task(self.tick())
            else:
                _logger.debug("[%s] Previous tick still running, skipping", self.name)
            await asyncio.sleep(self.interval)

    async def tick(self) -> Any:
        raise NotImplementedError

    async def _guarded(self, label: str, call: Callable[[], Awaitable[None]]) -> bool:
        try:
            await call()
        except TornRateLimitError:
            self.errors += 1
            _logger.warning("[%s] %s: rate limited", self.name, label)
        except TornDataError as exc:
            self.errors += 1
            _logger.warning("[%s] %s: untrusted response, skipped: %s", self.name, label, exc)
        except TornError as exc:
            self.errors += 1
            _logger.warning("[%s] %s: %s", self.name, label, exc)
        except Exception:
            self.errors += 1
            _logger.exception("[%s] %s: unexpected error", self.name, label)
        else:
            return True
        return False


class RoundRobinPoller(_TimedPoller):
    """Poll one item per tick, cycling through a list of ids."""

    def __init__(self, name: str, interval: float, poll: Callable[[str], Awaitable[None]]) -> None:
        super().__init__(name, interval)
        self._poll = poll
        self._items: list[str] = []
        self._index = 0

    @property
    def items(self) -> list[str]:
        return list(self._items)

    @property
    def index(self) -> int:
        return self._index

    def refresh(self, items: Iterable[str]) -> None:
        """Replace the item list, clamping the cursor into range."""
        self._items = list(items)
        if not self._items:
            self._index = 0
        else:
            self._index = min(self._index, len(self._items) - 1)

    async def tick(self) -> str | None:
        """Poll the item under the cursor.

        Returns the polled id, or ``None`` when the tick was skipped.
        """
        if self._ticking or not self._items:
            return None
        self._ticking = True
        item = self._items[self._index]
        self._index = (self._index + 1) % len(self._items)
        self.ticks += 1
        try:
            await self._guarded(item, functools.partial(self._poll, item))
        finally:
            self._ticking = False
        return item


class PeriodicPoller(_TimedPoller):
    """Call a single poll function every tick."""

    def __init__(self, name: str, interval: float, poll: Callable[[], Awaitable[None]]) -> None:
        super().__init__(name, interval)
        self._poll = poll

    async def tick(self) -> bool:
        """Returns ``False`` when skipped or failed."""
        if self._ticking:
            return False
        self._ticking = True
        self.ticks += 1
        try:
            return await self._guarded(self.name, self._poll)
        finally:
            self._ticking = False


class PollerManager:
    """Starts and stops every poller according to what is being tracked.

    Call :meth:`refresh` after any change to tracked ids or enabled
    self-tracking features.
    """

    def __init__(self, ctx: PollContext, intervals: Intervals | None = None, *, digest_pause: float = 1.0) -> None:
        intervals = intervals or Intervals()
        self._ctx = ctx
        self._digest_pause = digest_pause
        self.users = RoundRobinPoller("users", intervals.users, functools.partial(poll_user, ctx))
        self.factions = RoundRobinPoller("factions", intervals.factions, functools.partial(poll_faction, ctx))
        self.bars = PeriodicPoller("bars", intervals.bars, functools.partial(poll_bars, ctx))
        self.chain = PeriodicPoller("chain", intervals.chain, functools.partial(poll_chain, ctx))
        self.icons = PeriodicPoller("icons", intervals.icons, functools.partial(poll_icons, ctx))
        self.company = PeriodicPoller("company", intervals.company, functools.partial(poll_company, ctx))
        self._digest: asyncio.Task[None] | None = None
        self._started = False

    @property
    def pollers(self) -> tuple[_TimedPoller, ...]:
        return (self.users, self.factions, self.bars, self.chain, self.icons, self.company)

    def start(self) -> None:
        self._started = True
        self.refresh()
        if self._digest is None or self._digest.done():
            self._digest = asyncio.create_task(self._digest_loop(), name="tornwatch-daily")

    async def stop(self) -> None:
        self._started = False
        for poller in self.pollers:
            poller.stop()
        if self._digest is not None:
            self._digest.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._digest
            self._digest = None
        for poller in self.pollers:
            await poller.wait_idle()

    def refresh(self) -> None:
        store = self._ctx.store
        tracking = store.state.self_tracking
        self.users.refresh(store.active_user_ids())
        self.factions.refresh(store.active_faction_ids())
        if not self._started:
            return

        wanted = {
            self.users: bool(self.users.items),
            self.factions: bool(self.factions.items),
            # The bars feed also carries the chain, keep it alive for either.
            self.bars: tracking.bars_enabled or tracking.chain.enabled,
            self.chain: tracking.chain.enabled,
            self.icons: tracking.icons_enabled,
            self.company: tracking.addiction.enabled,
        }
        for poller, enabled in wanted.items():
            if enabled and not poller.running:
                poller.start()
            elif not enabled and poller.running:
                poller.stop()

    async def _digest_loop(self) -> None:
        while True:
            delay = seconds_until_next_digest(self._ctx.clock())
            _logger.info("[daily] Next digest in %.0fs", delay)
            await asyncio.sleep(delay)
            try:
                await run_daily_digest(self._ctx, pause=self._digest_pause)
            except Exception:
                _logger.exception("[daily] Digest failed")

    def get_stats(self) -> dict[str, Any]:
        return {
            poller.name: {
                "running": poller.running,
                "interval": poller.interval,
                "ticks": poller.ticks,
                "errors": poller.errors,
            }
            for poller in self.pollers
        }
