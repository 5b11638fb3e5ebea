from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator
from typing import Any

import aiohttp
import pytest
from aiohttp import test_utils, web

from tornwatch._transport import TornTransport, raise_for_api_error
from tornwatch.exceptions import (
    TornApiError,
    TornAuthenticationError,
    TornRateLimitError,
    TornTransportError,
)

# ------------------------------------------------------------------
# Error body mapping
# ------------------------------------------------------------------


def test_no_error_passes() -> None:
    raise_for_api_error({"profile": {}}, "/user/basic")


def test_rate_limit_code() -> None:
    with pytest.raises(TornRateLimitError) as excinfo:
        raise_for_api_error({"error": {"code": 5, "error": "Too many requests"}}, "/user/1/basic")
    assert excinfo.value.code == 5
    assert excinfo.value.endpoint == "/user/1/basic"


@pytest.mark.parametrize("code", [1, 2, 10, 13, 18])
def test_auth_codes(code: int) -> None:
    with pytest.raises(TornAuthenticationError):
        raise_for_api_error({"error": {"code": code, "error": "Incorrect key"}}, "/user/basic")


def test_other_codes_are_api_errors() -> None:
    with pytest.raises(TornApiError, match="API Error 6: Incorrect ID") as excinfo:
        raise_for_api_error({"error": {"code": "6", "error": "Incorrect ID"}}, "/user/0/basic")
    assert not isinstance(excinfo.value, (TornAuthenticationError, TornRateLimitError))


def test_string_error() -> None:
    with pytest.raises(TornApiError, match="API Error: weird"):
        raise_for_api_error({"error": "weird"}, "/x")


# ------------------------------------------------------------------
# HTTP
# ------------------------------------------------------------------


@contextlib.asynccontextmanager
async def _torn(handler: Any) -> AsyncIterator[tuple[str, aiohttp.ClientSession]]:
    app = web.Application()
    app.router.add_get("/{tail:.*}", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        async with aiohttp.ClientSession() as session:
            yield f"http://{server.host}:{server.port}", session
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_get_json_sends_key_and_params() -> None:
    seen: dict[str, Any] = {}

    async def handler(request: web.Request) -> web.Response:
        seen["path"] = request.path
        seen["query"] = dict(request.query)
        return web.json_response({"energy": {"current": 5, "maximum": 150}})

    async with _torn(handler) as (url, session):
        transport = TornTransport("secret", session)
        body = await transport.get_json(url, "/user/", {"selections": "bars"})

    assert body["energy"]["current"] == 5
    assert seen["path"] == "/user/"
    assert seen["query"] == {"key": "secret", "striptags": "true", "selections": "bars"}


@pytest.mark.asyncio
async def test_http_429_is_rate_limit() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=429, text="slow down")

    async with _torn(handler) as (url, session):
        with pytest.raises(TornRateLimitError):
            await TornTransport("k", session).get_json(url, "/user/basic")


@pytest.mark.asyncio
async def test_error_body_wins_over_status() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"error": {"code": 2, "error": "Incorrect Key"}}, status=403)

    async with _torn(handler) as (url, session):
        with pytest.raises(TornAuthenticationError):
            await TornTransport("k", session).get_json(url, "/user/basic")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "body"),
    [
        (200, "<html>maintenance</html>"),
        (200, "[1, 2, 3]"),
        (502, '{"ok": false}'),
    ],
)
async def test_bad_responses_are_transport_errors(status: int, body: str) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=status, text=body, content_type="application/json")

    async with _torn(handler) as (url, session):
        with pytest.raises(TornTransportError) as excinfo:
            await TornTransport("k", session).get_json(url, "/faction/1")

    assert excinfo.value.status_code == status
    assert excinfo.value.endpoint == "/faction/1"


@pytest.mark.asyncio
async def test_connection_failure_is_transport_error() -> None:
    async with aiohttp.ClientSession() as session:
        transport = TornTransport("secret", session, timeout=2)
        with pytest.raises(TornTransportError) as excinfo:
            await transport.get_json("http://127.0.0.1:1", "/user/basic")

    assert "secret" not in str(excinfo.value)
