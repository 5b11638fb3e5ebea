"""High-level async client for the Torn API."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
from pydantic import ValidationError

from tornwatch._constants import API_V1_URL, API_V2_URL
from tornwatch._transport import TornTransport, Transport
from tornwatch.exceptions import TornAuthenticationError, TornDataError, TornError
from tornwatch.models.bars import Bars
from tornwatch.models.company import CompanyEmployee
from tornwatch.models.faction import Faction
from tornwatch.models.icons import Icon, IconFeed
from tornwatch.models.profile import CoarseState, Profile

_logger = logging.getLogger(__name__)


def _parse_icons(payload: Any) -> list[Icon]:
    # v2 returns a list of icon objects; v1 a mapping of "iconNN" -> text.
    if isinstance(payload, list):
        return [Icon.model_validate(item) for item in payload if isinstance(item, dict)]
    if isinstance(payload, dict):
        icons: list[Icon] = []
        for key, value in payload.items():
            if isinstance(value, dict):
                icons.append(Icon.model_validate({"id": key, **value}))
            else:
                icons.append(Icon.model_validate({"id": key, "description": value}))
        return icons
    return []


class TornClient:
    """Async client for the Torn API.

    Usage::

        async with TornClient(api_key) as client:
            owner = await client.validate_key()
            profile = await client.get_profile(12345)
    """

    def __init__(
        self,
        api_key: str,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        timeout: float = 15.0,
        v1_url: str = API_V1_URL,
        v2_url: str = API_V2_URL,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._v1 = v1_url
        self._v2 = v2_url
        self._owner_id: int | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TornClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = TornTransport(self._api_key, self._http_session, timeout=self._timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    @property
    def owner_id(self) -> int | None:
        """Player id of the key owner, known after :meth:`validate_key`."""
        return self._owner_id

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise TornError("Client not initialized. Use 'async with TornClient(...) as client:'")
        return self._transport

    async def _get(self, base_url: str, path: str, **params: str) -> dict[str, Any]:
        return await self._require_transport().get_json(base_url, path, params or None)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: int | str) -> Profile:
        """Fetch a player's basic profile and status.

        Raises
        ------
        TornDataError
            If the response has no profile or no status state.
        """
        path = f"/user/{user_id}/basic"
        data = await self._get(self._v2, path)
        return self._parse_profile(data, path)

    async def get_own_profile(self) -> Profile:
        path = "/user/basic"
        data = await self._get(self._v2, path)
        return self._parse_profile(data, path, require_state=False)

    @staticmethod
    def _parse_profile(data: dict[str, Any], endpoint: str, *, require_state: bool = True) -> Profile:
        raw = data.get("profile")
        if not isinstance(raw, dict):
            raise TornDataError(f"Invalid profile response from {endpoint}", endpoint=endpoint)
        try:
            profile = Profile.model_validate(raw)
        except ValidationError as exc:
            message = f"Malformed profile from {endpoint}: {exc.error_count()} errors"
            raise TornDataError(message, endpoint=endpoint) from exc
        if require_state and profile.status.state is CoarseState.UNKNOWN:
            raise TornDataError(f"Missing status for {endpoint}", endpoint=endpoint)
        return profile

    async def get_bars(self) -> Bars:
        """Fetch the key owner's bars and chain."""
        data = await self._get(self._v1, "/user/", selections="bars")
        try:
            return Bars.model_validate(data)
        except ValidationError as exc:
            message = f"Malformed bars response: {exc.error_count()} errors"
            raise TornDataError(message, endpoint="/user/") from exc

    async def get_icons(self) -> IconFeed:
        """Fetch the key owner's active icon badges."""
        data = await self._get(self._v2, "/user/icons")
        if "icons" not in data:
            raise TornDataError("Invalid icons response", endpoint="/user/icons")
        try:
            return IconFeed(_parse_icons(data["icons"]))
        except ValidationError as exc:
            message = f"Malformed icons response: {exc.error_count()} errors"
            raise TornDataError(message, endpoint="/user/icons") from exc

    # ------------------------------------------------------------------
    # Company
    # ------------------------------------------------------------------

    async def get_company_employees(self) -> dict[str, CompanyEmployee]:
        """Fetch the key owner's company roster keyed by player id."""
        data = await self._get(self._v1, "/company/", selections="employees")
        employees = data.get("company_employees")
        if not isinstance(employees, dict):
            raise TornDataError("Invalid company employees response", endpoint="/company/")
        try:
            return {str(uid): CompanyEmployee.model_validate(emp) for uid, emp in employees.items()}
        except ValidationError as exc:
            message = f"Malformed company employees response: {exc.error_count()} errors"
            raise TornDataError(message, endpoint="/company/") from exc

    # ------------------------------------------------------------------
    # Factions
    # ------------------------------------------------------------------

    async def get_faction(self, faction_id: int | str) -> Faction:
        """Fetch a faction with its member roster.

        Raises
        ------
        TornDataError
            If the roster is missing or empty.
        """
        path = f"/faction/{faction_id}"
        data = await self._get(self._v1, path, selections="basic")
        members = data.get("members")
        if not isinstance(members, (dict, list)):
            raise TornDataError(f"Missing members for faction {faction_id}", endpoint=path)
        if not members:
            raise TornDataError(f"Empty members for faction {faction_id}", endpoint=path)
        try:
            return Faction.model_validate(data)
        except ValidationError as exc:
            message = f"Malformed faction {faction_id}: {exc.error_count()} errors"
            raise TornDataError(message, endpoint=path) from exc

    # ------------------------------------------------------------------
    # Utility
    # ------------------------------------------------------------------

    async def validate_key(self) -> Profile:
        """Check the key by fetching the owner's profile.

        Raises
        ------
        TornAuthenticationError
            If the key owner's profile cannot be fetched for any reason.
        """
        try:
            profile = await self.get_own_profile()
        except TornAuthenticationError:
            raise
        except TornError as exc:
            raise TornAuthenticationError(f"Could not validate API key: {exc}") from exc
        self._owner_id = profile.id
        _logger.info("API key valid for %s [%s]", profile.name, profile.id)
        return profile
