"""JSON-backed tracking store.

This is the only component that reads or writes the state file.  Pollers
mutate the loaded :class:`TrackerState` in place and call :meth:`save`;
writes are coalesced so a burst of mutations within one tick produces a
single file write.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tornwatch.exceptions import TornPersistenceError
from tornwatch.state.models import TrackedFaction, TrackedUser, TrackerState

_logger = logging.getLogger(__name__)

#: Quiet period between the last ``save()`` and the actual write.
SAVE_DELAY_SECONDS = 0.3


class StateStore:
    """Owns the persisted :class:`TrackerState` and its file."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        clock: Callable[[], float] = time.time,
        save_delay: float = SAVE_DELAY_SECONDS,
    ) -> None:
        self._path = Path(path)
        self._clock = clock
        self._save_delay = save_delay
        self._state = TrackerState()
        self._dirty = False
        self._pending: asyncio.TimerHandle | None = None
        self._last_reason = ""
        self._writes = 0
        self._write_errors = 0
        self._last_saved_at: float | None = None

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def dirty(self) -> bool:
        return self._dirty

    def load(self) -> TrackerState:
        """Read the state file, falling back to an empty state.

        A missing file is normal on first start.  A corrupt file is logged
        and replaced by defaults on the next write.
        """
        self._ensure_writable_location()
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            _logger.info("No state file at %s, starting empty", self._path)
            self._state = TrackerState()
            return self._state
        except OSError as exc:
            _logger.warning("Could not read state file %s: %s", self._path, exc)
            self._state = TrackerState()
            return self._state

        try:
            self._state = TrackerState.model_validate_json(raw)
        except ValidationError as exc:
            _logger.warning("State file %s is corrupt, using defaults: %s", self._path, exc.errors()[:3])
            self._state = TrackerState()
        except ValueError as exc:
            _logger.warning("State file %s is corrupt, using defaults: %s", self._path, exc)
            self._state = TrackerState()
        else:
            _logger.info(
                "Loaded state: %d users, %d factions",
                len(self._state.users),
                len(self._state.factions),
            )
        return self._state

    def save(self, reason: str = "") -> None:
        """Mark the state dirty and schedule a coalesced write.

        Outside a running event loop the write happens immediately.
        """
        self._dirty = True
        if reason:
            self._last_reason = reason
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return
        if self._pending is None:
            self._pending = loop.call_later(self._save_delay, self._flush_pending)

    def _flush_pending(self) -> None:
        self._pending = None
        self.flush()

    def flush(self) -> bool:
        """Write now if dirty.  Returns whether a write succeeded.

        Write failures are logged, never raised; the state stays dirty so
        the next save retries.
        """
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        if not self._dirty:
            return False
        try:
            self._write(self._state.model_dump_json(indent=2))
        except TornPersistenceError as exc:
            self._write_errors += 1
            _logger.error("State write failed (%s): %s", self._last_reason or "unspecified", exc)
            return False
        self._dirty = False
        self._writes += 1
        self._last_saved_at = self._clock()
        _logger.debug("State saved (%s)", self._last_reason or "unspecified")
        return True

    def _write(self, payload: str) -> None:
        # Write to a sibling temp file then rename so a crash never leaves
        # a half-written state file behind.
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise TornPersistenceError(f"Could not write {self._path}: {exc}") from exc

    def _ensure_writable_location(self) -> None:
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass
        if os.access(directory, os.W_OK):
            return
        fallback = Path(tempfile.gettempdir()) / "tornwatch" / self._path.name
        _logger.warning("%s is not writable, persisting to %s instead", directory, fallback)
        try:
            fallback.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            _logger.error("Could not create %s, writes will fail: %s", fallback.parent, exc)
            return
        self._path = fallback

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def user(self, user_id: str | int) -> TrackedUser | None:
        return self._state.users.get(str(user_id))

    def faction(self, faction_id: str | int) -> TrackedFaction | None:
        return self._state.factions.get(str(faction_id))

    def active_user_ids(self) -> list[str]:
        return [uid for uid, user in self._state.users.items() if user.enabled]

    def active_faction_ids(self) -> list[str]:
        return [fid for fid, faction in self._state.factions.items() if faction.enabled]

    def get_stats(self) -> dict[str, Any]:
        state = self._state
        tracking = state.self_tracking
        return {
            "path": str(self._path),
            "users": len(state.users),
            "users_enabled": len(self.active_user_ids()),
            "factions": len(state.factions),
            "factions_enabled": len(self.active_faction_ids()),
            "members_cached": sum(len(f.members) for f in state.factions.values()),
            "bars_enabled": sorted(k.value for k, v in tracking.bars.items() if v.enabled),
            "cooldowns_enabled": sorted(k.value for k, v in tracking.cooldowns.items() if v.enabled),
            "icons_enabled": sorted(k.value for k, v in tracking.icons.items() if v.enabled),
            "chain_enabled": tracking.chain.enabled,
            "addiction_enabled": tracking.addiction.enabled,
            "dirty": self._dirty,
            "writes": self._writes,
            "write_errors": self._write_errors,
            "last_saved_at": self._last_saved_at,
        }
