"""Liveness and stats endpoints for external monitoring."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from aiohttp import web

from tornwatch.pollers.scheduler import PollerManager
from tornwatch.state.store import StateStore

_logger = logging.getLogger(__name__)

STORE_KEY: web.AppKey[StateStore] = web.AppKey("store", StateStore)
MANAGER_KEY: web.AppKey[PollerManager | None] = web.AppKey("manager")
STARTED_KEY: web.AppKey[float] = web.AppKey("started_at", float)
CLOCK_KEY: web.AppKey[Callable[[], float]] = web.AppKey("clock")


def tracking_stats(store: StateStore) -> dict[str, Any]:
    stats = store.get_stats()
    return {
        "users": {"total": stats["users"], "active": stats["users_enabled"]},
        "factions": {
            "total": stats["factions"],
            "active": stats["factions_enabled"],
            "members": stats["members_cached"],
        },
        "self_alerts": {
            "bars": stats["bars_enabled"],
            "cooldowns": stats["cooldowns_enabled"],
            "icons": stats["icons_enabled"],
            "chain": stats["chain_enabled"],
            "addiction": stats["addiction_enabled"],
        },
    }


async def handle_root(request: web.Request) -> web.Response:
    return web.Response(text="tornwatch is running")


async def handle_healthz(request: web.Request) -> web.Response:
    app = request.app
    uptime = app[CLOCK_KEY]() - app[STARTED_KEY]
    payload: dict[str, Any] = {
        "ok": True,
        "uptime": round(uptime, 1),
        "stats": tracking_stats(app[STORE_KEY]),
    }
    manager = app[MANAGER_KEY]
    if manager is not None:
        payload["pollers"] = manager.get_stats()
    return web.json_response(payload)


async def handle_stats(request: web.Request) -> web.Response:
    return web.json_response(tracking_stats(request.app[STORE_KEY]))


def make_app(
    store: StateStore,
    manager: PollerManager | None = None,
    *,
    clock: Callable[[], float] = time.time,
) -> web.Application:
    app = web.Application()
    app[STORE_KEY] = store
    app[MANAGER_KEY] = manager
    app[CLOCK_KEY] = clock
    app[STARTED_KEY] = clock()
    app.router.add_get("/", handle_root)
    app.router.add_get("/healthz", handle_healthz)
    app.router.add_get("/stats", handle_stats)
    return app


async def start_health_server(app: web.Application, port: int, host: str = "0.0.0.0") -> web.AppRunner:
    runner = web.AppRunner(app, access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    _logger.info("Health endpoint listening on %s:%d", host, port)
    return runner
