"""
Steam OpenID 2.0 Authentication for CSRank Bridge.

Steam uses OpenID 2.0 (NOT OAuth2). The flow is:
1. App opens /auth/steam in a browser
2. Redirect to steamcommunity.com/openid/login
3. Steam redirects back with the user's Steam64 ID in the claimed_id
4. We verify the assertion with Steam (check_authentication)
5. Fetch the Steam profile, upsert the user, issue a token for the app

STEAM_API_KEY is required for the profile lookup.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import urlencode, urlparse

import httpx

from csrank.core.config import get_config
from csrank.exceptions import SteamAPIError

logger = logging.getLogger(__name__)

# Steam OpenID 2.0 constants
STEAM_OPENID_URL = "https://steamcommunity.com/openid/login"
STEAM_OPENID_NS = "http://specs.openid.net/auth/2.0"
STEAM_IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"
STEAM_CLAIMED_ID_PATTERN = re.compile(r"^https?://steamcommunity\.com/openid/id/(\d{17})$")

STEAM_API_BASE = "https://api.steampowered.com"


class IdentityVerifier(Protocol):
    """Anything that can turn an identity provider's callback into a stable identity."""

    def build_auth_url(self, return_url: str) -> str: ...

    async def verify(self, params: Mapping[str, str]) -> str | None: ...


class SteamOpenIDVerifier:
    """Verifies Steam OpenID 2.0 positive assertions by asking Steam directly."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout if timeout is not None else get_config().steam.http_timeout_seconds

    def build_auth_url(self, return_url: str) -> str:
        """Build the Steam OpenID login redirect URL.

        Args:
            return_url: The callback URL Steam will redirect to after auth.

        Returns:
            Full Steam OpenID URL to redirect the user to.
        """
        params = {
            "openid.ns": STEAM_OPENID_NS,
            "openid.mode": "checkid_setup",
            "openid.return_to": return_url,
            "openid.realm": get_realm(return_url),
            "openid.identity": STEAM_IDENTIFIER_SELECT,
            "openid.claimed_id": STEAM_IDENTIFIER_SELECT,
        }
        return f"{STEAM_OPENID_URL}?{urlencode(params)}"

    async def verify(self, params: Mapping[str, str]) -> str | None:
        """Validate Steam's OpenID response and extract the Steam64 ID.

        Performs the check_authentication round-trip so a forged callback
        cannot log anyone in.

        Args:
            params: The query parameters from Steam's callback redirect.

        Returns:
            Steam64 ID (17-digit string) or None if the assertion is not valid.
        """
        if params.get("openid.mode") != "id_res":
            logger.warning("Steam OpenID: mode is not id_res")
            return None

        claimed_id = params.get("openid.claimed_id", "")
        match = STEAM_CLAIMED_ID_PATTERN.match(claimed_id)
        if not match:
            logger.warning(f"Steam OpenID: invalid claimed_id format: {claimed_id}")
            return None

        steam_id = match.group(1)

        verify_params = dict(params)
        verify_params["openid.mode"] = "check_authentication"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(STEAM_OPENID_URL, data=verify_params)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Steam OpenID: HTTP error during validation: {e}")
            return None

        # Steam answers with newline-separated key:value pairs
        if "is_valid:true" in resp.text:
            logger.info(f"Steam OpenID: validated Steam64 ID {steam_id}")
            return steam_id

        logger.warning(f"Steam OpenID: validation failed. Response: {resp.text}")
        return None


async def fetch_player_summary(steam_id: str, timeout: float | None = None) -> dict[str, Any]:
    """Fetch a player's raw profile object from the Steam Web API.

    Args:
        steam_id: Steam64 ID (17-digit string)

    Returns:
        The GetPlayerSummaries player object, unmodified.

    Raises:
        SteamAPIError: API key missing, HTTP failure, or unknown player
    """
    steam = get_config().steam
    if not steam.api_key:
        raise SteamAPIError("STEAM_API_KEY not configured")

    url = f"{STEAM_API_BASE}/ISteamUser/GetPlayerSummaries/v2/"
    params = {"key": steam.api_key, "steamids": steam_id}

    try:
        async with httpx.AsyncClient(
            timeout=timeout if timeout is not None else steam.http_timeout_seconds
        ) as client:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPError as e:
        raise SteamAPIError(f"Steam API error fetching player summary: {e}") from e
    except ValueError as e:
        raise SteamAPIError(f"Steam API returned invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SteamAPIError("Steam API returned an unexpected payload")
    players = (data.get("response") or {}).get("players") or []
    if not players:
        raise SteamAPIError(f"Steam API has no profile for {steam_id}")
    return players[0]


def get_realm(return_url: str) -> str:
    """Extract the realm (scheme + host) from a URL.

    Args:
        return_url: Full callback URL

    Returns:
        Realm string (e.g., "https://csrank.example.com")
    """
    parsed = urlparse(return_url)
    return f"{parsed.scheme}://{parsed.netloc}"
