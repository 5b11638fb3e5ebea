"""Notification sinks: Discord direct messages and plain logging."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from tornwatch._constants import DISCORD_API_URL, USER_AGENT
from tornwatch.exceptions import TornNotificationError
from tornwatch.notify.events import Notification

_logger = logging.getLogger(__name__)


class DiscordDirectMessageSink:
    """Deliver notifications as DMs from a bot account to one user.

    Uses the Discord REST API directly: the DM channel is opened once
    (``POST /users/@me/channels``) and cached, then every message is a
    ``POST /channels/{id}/messages`` carrying a single embed.
    """

    def __init__(
        self,
        token: str,
        recipient_id: str,
        *,
        session: aiohttp.ClientSession | None = None,
        api_url: str = DISCORD_API_URL,
        timeout: float = 15.0,
    ) -> None:
        self._token = token
        self._recipient_id = recipient_id
        self._external_session = session is not None
        self._http = session
        self._api_url = api_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._channel_id: str | None = None

    def _session(self) -> aiohttp.ClientSession:
        if self._http is None:
            self._http = aiohttp.ClientSession(timeout=self._timeout)
        return self._http

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {
            "authorization": f"Bot {self._token}",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        url = f"{self._api_url}{path}"
        _logger.debug("POST %s", url)
        try:
            async with self._session().post(url, json=payload, headers=headers) as resp:
                if resp.status == 429:
                    retry_after: float | None = None
                    try:
                        body = await resp.json(content_type=None)
                        retry_after = float(body.get("retry_after"))
                    except (ValueError, TypeError, AttributeError, aiohttp.ContentTypeError):
                        retry_after = None
                    raise TornNotificationError(
                        "Discord rate limited", status_code=429, retry_after=retry_after
                    )
                if resp.status >= 400:
                    text = await resp.text()
                    raise TornNotificationError(
                        f"Discord HTTP {resp.status} on {path}: {text[:200]}", status_code=resp.status
                    )
                data = await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise TornNotificationError(f"Discord request to {path} failed: {exc}") from exc
        except TimeoutError as exc:
            raise TornNotificationError(f"Discord request to {path} timed out") from exc
        return data if isinstance(data, dict) else {}

    async def _dm_channel(self) -> str:
        if self._channel_id is None:
            data = await self._post("/users/@me/channels", {"recipient_id": self._recipient_id})
            channel_id = data.get("id")
            if not channel_id:
                raise TornNotificationError("Discord did not return a DM channel id")
            self._channel_id = str(channel_id)
        return self._channel_id

    async def send(self, notification: Notification) -> None:
        channel_id = await self._dm_channel()
        await self._post(f"/channels/{channel_id}/messages", {"embeds": [notification.to_embed()]})

    async def close(self) -> None:
        if not self._external_session and self._http is not None:
            await self._http.close()
        self._http = None


class LoggingSink:
    """Write notifications to the log instead of delivering them."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    async def send(self, notification: Notification) -> None:
        _logger.log(self._level, "[%s] %s", notification.kind, notification.render_text().replace("\n", " | "))

    async def close(self) -> None:
        return None
