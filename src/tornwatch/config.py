"""Process configuration for tornwatch."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from tornwatch._constants import DEFAULT_ADDICTION_THRESHOLD, DEFAULT_OFFLINE_HOURS
from tornwatch.exceptions import TornConfigError


def _split_ids(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _env_number(env: Mapping[str, str], key: str, cast: type[int] | type[float]) -> Any:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return cast(raw)
    except ValueError as exc:
        raise TornConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class Intervals:
    """Poll intervals in seconds.

    ``users`` and ``factions`` are per-item: one entity is fetched per
    tick, so a full cycle over N tracked users takes ``N * users``.
    """

    users: float = 5.0
    factions: float = 30.0
    bars: float = 60.0
    chain: float = 10.0
    icons: float = 30.0
    company: float = 60.0


@dataclasses.dataclass(frozen=True)
class TornWatchConfig:
    """Process configuration.

    Parameters
    ----------
    api_key : str
        Torn API key. Every upstream call authenticates with it.
    discord_token : str or None
        Discord bot token used to deliver direct messages. When either
        this or ``owner_discord_id`` is missing, notifications are only
        logged.
    owner_discord_id : str or None
        Discord user id of the operator.
    user_ids : tuple of str
        Player ids tracked at startup if not already in the store.
    faction_ids : tuple of str
        Faction ids tracked at startup if not already in the store.
    intervals : Intervals
        Poll intervals.
    persist_path : str
        JSON state file.
    port : int
        Health endpoint port. ``0`` disables the endpoint.
    offline_hours : int
        Default faction member offline threshold.
    addiction_threshold : int
        Default company addiction alert threshold.
    request_timeout : float
        Total timeout in seconds for a single API request.
    """

    api_key: str
    discord_token: str | None = None
    owner_discord_id: str | None = None
    user_ids: tuple[str, ...] = ()
    faction_ids: tuple[str, ...] = ()
    intervals: Intervals = dataclasses.field(default_factory=Intervals)
    persist_path: str = "./data/store.json"
    port: int = 3000
    offline_hours: int = DEFAULT_OFFLINE_HOURS
    addiction_threshold: int = DEFAULT_ADDICTION_THRESHOLD
    request_timeout: float = 15.0

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise TornConfigError("Missing required config: api_key (TORN_API_KEY)")

    @property
    def discord_enabled(self) -> bool:
        return bool(self.discord_token and self.owner_discord_id)

    @classmethod
    def from_env(cls, **overrides: Any) -> TornWatchConfig:
        """Create configuration from environment variables.

        Reads ``TORN_API_KEY`` plus the optional ``DISCORD_TOKEN``,
        ``OWNER_DISCORD_ID``, ``USER_IDS``, ``FACTION_IDS``,
        ``REQUEST_INTERVAL_MS``, ``FACTION_INTERVAL_MS``, ``PERSIST_PATH``,
        ``PORT``, ``FACTION_OFFLINE_HOURS``, ``ADDICTION_THRESHOLD`` and
        ``REQUEST_TIMEOUT``. Explicit keyword arguments override
        environment values.

        Raises
        ------
        TornConfigError
            If the API key is missing or a numeric variable is malformed.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        _ENV_STR_MAP = {
            "TORN_API_KEY": "api_key",
            "DISCORD_TOKEN": "discord_token",
            "OWNER_DISCORD_ID": "owner_discord_id",
            "PERSIST_PATH": "persist_path",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        config_kwargs["user_ids"] = _split_ids(env.get("USER_IDS"))
        config_kwargs["faction_ids"] = _split_ids(env.get("FACTION_IDS"))

        interval_kwargs: dict[str, float] = {}
        request_ms = _env_number(env, "REQUEST_INTERVAL_MS", int)
        if request_ms:
            interval_kwargs["users"] = request_ms / 1000.0
        faction_ms = _env_number(env, "FACTION_INTERVAL_MS", int)
        if faction_ms:
            interval_kwargs["factions"] = faction_ms / 1000.0
        if interval_kwargs:
            config_kwargs["intervals"] = Intervals(**interval_kwargs)

        for env_key, field_name, cast in (
            ("PORT", "port", int),
            ("FACTION_OFFLINE_HOURS", "offline_hours", int),
            ("ADDICTION_THRESHOLD", "addiction_threshold", int),
            ("REQUEST_TIMEOUT", "request_timeout", float),
        ):
            value = _env_number(env, env_key, cast)
            if value is not None:
                config_kwargs[field_name] = value

        config_kwargs.update(overrides)
        config_kwargs.setdefault("api_key", "")

        return cls(**config_kwargs)
