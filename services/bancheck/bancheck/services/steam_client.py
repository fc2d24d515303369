"""Steam Web API client for player profiles.

Only ISteamUser/GetPlayerSummaries/v2 is used: the ban check refreshes a
player's display name, avatars and profile URL in user_info when the stored
row is stale.

Failure handling:
- Missing key or SteamID: no request, returns None
- Non-2xx response: logged, returns None
- Transport errors (timeouts, DNS, ...): raised to the caller
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger("bancheck")

DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass
class PlayerSummary:
    """Parsed player entry from GetPlayerSummaries."""

    steam_id: str
    persona_name: str = "Unknown"
    profile_url: str | None = None
    avatar: str | None = None
    avatar_medium: str | None = None
    avatar_full: str | None = None


class SteamWebApiClient:
    """Client for the Steam Web API."""

    BASE_URL = "https://api.steampowered.com"
    PLAYER_SUMMARIES_PATH = "/ISteamUser/GetPlayerSummaries/v2/"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client with a request timeout (seconds)."""
        self.timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def get_player_summary(self, api_key: str, steam_id64: str) -> PlayerSummary | None:
        """Fetch one player's profile.

        Args:
            api_key: Steam Web API key.
            steam_id64: Player SteamID64.

        Returns:
            The player's summary, or None if Steam has nothing usable.
        """
        if not api_key.strip() or not steam_id64.strip():
            return None

        client = await self._get_client()
        response = await client.get(
            self.PLAYER_SUMMARIES_PATH,
            params={"key": api_key, "steamids": steam_id64},
        )
        if not response.is_success:
            logger.warning(
                f"[bancheck] Steam GetPlayerSummaries returned {response.status_code} for {steam_id64}"
            )
            return None

        return _parse_player_summaries(response.json())


def _parse_player_summaries(data: Any) -> PlayerSummary | None:
    """Pick the first player out of a GetPlayerSummaries payload."""
    if not isinstance(data, dict):
        return None
    inner = data.get("response")
    if not isinstance(inner, dict):
        return None
    players = inner.get("players")
    if not isinstance(players, list) or not players:
        return None

    item = players[0]
    if not isinstance(item, dict):
        return None

    return PlayerSummary(
        steam_id=str(item.get("steamid") or ""),
        persona_name=str(item.get("personaname") or "Unknown"),
        profile_url=item.get("profileurl"),
        avatar=item.get("avatar"),
        avatar_medium=item.get("avatarmedium"),
        avatar_full=item.get("avatarfull"),
    )
