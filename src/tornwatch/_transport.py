"""HTTP transport for the Torn API with key injection and error mapping."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from tornwatch._constants import AUTH_ERROR_CODES, RATE_LIMIT_CODES, USER_AGENT
from tornwatch._redact import redact_for_log, redact_url
from tornwatch.exceptions import (
    TornApiError,
    TornAuthenticationError,
    TornRateLimitError,
    TornTransportError,
)

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the client.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`TornTransport`) concrete.
    """

    async def get_json(
        self,
        base_url: str,
        path: str,
        params: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        ...


def raise_for_api_error(body: Mapping[str, Any], endpoint: str) -> None:
    """Map a Torn ``{"error": {"code": n, "error": "..."}}`` body to an exception."""
    error = body.get("error")
    if not error:
        return
    if isinstance(error, Mapping):
        raw_code = error.get("code")
        message = str(error.get("error") or "unknown error")
    else:
        raw_code = None
        message = str(error)
    try:
        code = int(raw_code) if raw_code is not None else None
    except (TypeError, ValueError):
        code = None

    text = f"API Error {code}: {message}" if code is not None else f"API Error: {message}"
    if code in RATE_LIMIT_CODES:
        raise TornRateLimitError(text, code=code, endpoint=endpoint)
    if code in AUTH_ERROR_CODES:
        raise TornAuthenticationError(text, code=code, endpoint=endpoint)
    raise TornApiError(text, code=code, endpoint=endpoint)


class TornTransport:
    """Authenticated GET requests against the v1 and v2 Torn APIs."""

    def __init__(
        self,
        api_key: str,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 15.0,
    ) -> None:
        self._api_key = api_key
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_json(
        self,
        base_url: str,
        path: str,
        params: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Fetch ``base_url + path`` and return the decoded JSON object.

        Raises
        ------
        TornRateLimitError
            On HTTP 429 or Torn error code 5.
        TornAuthenticationError
            When the key is rejected.
        TornApiError
            For any other ``error`` body.
        TornTransportError
            On network failure, non-200 status or invalid JSON.
        """
        query: dict[str, str] = {"key": self._api_key, "striptags": "true"}
        if params:
            query.update(params)
        url = f"{base_url}{path}"
        headers = {"accept": "application/json", "user-agent": USER_AGENT}

        _logger.debug("GET %s params=%s", url, redact_for_log(query))

        try:
            async with self._http.get(url, params=query, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise TornTransportError(
                f"Request to {path} failed: {redact_url(str(exc))}",
                endpoint=path,
            ) from exc
        except TimeoutError as exc:
            raise TornTransportError(f"Request to {path} timed out", endpoint=path) from exc

        if status == 429:
            raise TornRateLimitError("Rate limited (HTTP 429)", endpoint=path)

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TornTransportError(
                f"Invalid JSON from {path} (HTTP {status}): {text[:200]}",
                status_code=status,
                endpoint=path,
            ) from exc

        if not isinstance(body, dict):
            raise TornTransportError(
                f"Unexpected payload type from {path}: {type(body).__name__}",
                status_code=status,
                endpoint=path,
            )

        # Torn reports application errors in the body, sometimes with a
        # non-200 status; check the body first so the code is preserved.
        raise_for_api_error(body, path)

        if status != 200:
            raise TornTransportError(
                f"HTTP {status} from {path}: {text[:200]}",
                status_code=status,
                endpoint=path,
            )

        _logger.debug("Response %s: %s", path, redact_for_log(body, max_string=200))
        return body
