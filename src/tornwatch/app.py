"""Process wiring: store, client, notifier, pollers and health endpoint."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from aiohttp import web

from tornwatch.client import TornClient
from tornwatch.commands import OperatorCommands
from tornwatch.config import TornWatchConfig
from tornwatch.exceptions import TornError
from tornwatch.health import make_app, start_health_server
from tornwatch.notify.discord import DiscordDirectMessageSink, LoggingSink
from tornwatch.notify.dispatcher import NotificationDispatcher, NotificationSink
from tornwatch.pollers.base import PollContext
from tornwatch.pollers.scheduler import PollerManager
from tornwatch.state.store import StateStore

_logger = logging.getLogger(__name__)


def build_sink(config: TornWatchConfig) -> NotificationSink:
    if config.discord_enabled:
        assert config.discord_token is not None and config.owner_discord_id is not None  # noqa: S101
        return DiscordDirectMessageSink(
            config.discord_token,
            config.owner_discord_id,
            timeout=config.request_timeout,
        )
    _logger.warning("DISCORD_TOKEN or OWNER_DISCORD_ID not set, notifications will only be logged")
    return LoggingSink()


async def seed_tracking(commands: OperatorCommands, store: StateStore, config: TornWatchConfig) -> None:
    """Track ids from the environment that the store does not know yet."""
    for user_id in config.user_ids:
        if store.user(user_id) is not None:
            continue
        try:
            await commands.track_user(user_id)
        except TornError as exc:
            _logger.warning("Could not track user %s from USER_IDS: %s", user_id, exc)
    for faction_id in config.faction_ids:
        if store.faction(faction_id) is not None:
            continue
        try:
            await commands.track_faction(faction_id)
        except TornError as exc:
            _logger.warning("Could not track faction %s from FACTION_IDS: %s", faction_id, exc)


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on every platform (e.g. Windows event loops).
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)


async def run(config: TornWatchConfig, *, stop: asyncio.Event | None = None) -> None:
    """Run until ``stop`` is set (or SIGINT/SIGTERM arrives).

    Raises
    ------
    TornAuthenticationError
        If the API key cannot be validated at startup.
    """
    stop = stop or asyncio.Event()
    store = StateStore(config.persist_path)
    store.load()

    dispatcher = NotificationDispatcher(build_sink(config))
    runner: web.AppRunner | None = None

    async with TornClient(config.api_key, timeout=config.request_timeout) as client:
        owner = await client.validate_key()
        store.state.owner_id = owner.id
        addiction = store.state.self_tracking.addiction
        if not addiction.enabled:
            addiction.threshold = config.addiction_threshold
        store.save("startup")

        ctx = PollContext(store=store, client=client, notifier=dispatcher)
        manager = PollerManager(ctx, config.intervals)
        commands = OperatorCommands(store, client, manager, offline_hours=config.offline_hours)

        dispatcher.start()
        try:
            await seed_tracking(commands, store, config)
            manager.start()
            if config.port:
                runner = await start_health_server(make_app(store, manager), config.port)
            _install_signal_handlers(stop)
            _logger.info(
                "Watching %d users and %d factions",
                len(store.active_user_ids()),
                len(store.active_faction_ids()),
            )
            await stop.wait()
        finally:
            _logger.info("Shutting down")
            await manager.stop()
            if runner is not None:
                await runner.cleanup()
            await dispatcher.stop()
            store.flush()
