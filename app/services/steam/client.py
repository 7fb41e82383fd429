from typing import Any

import httpx

from app.core.base_client import BaseClient
from app.core.config import settings
from app.core.exceptions import UpstreamUnavailableError
from app.core.version import __version__


class SteamClient(BaseClient):
    """
    Client for the Steam Web API (owned games and player achievements).
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {
            "User-Agent": f"SteamAIReco/{__version__}",
            "Accept": "application/json",
        }
        super().__init__(
            base_url=settings.STEAM_API_BASE_URL,
            timeout=timeout,
            max_retries=max_retries,
            headers=headers,
            transport=transport,
        )
        self.api_key = api_key if api_key is not None else settings.STEAM_API_KEY

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """Override request to always include the API key."""
        if not self.api_key:
            raise UpstreamUnavailableError("STEAM_API_KEY missing")
        params = kwargs.get("params") or {}
        params["key"] = self.api_key
        kwargs["params"] = params
        return await super()._request(method, url, **kwargs)

    async def get_owned_games(self, steamid: str) -> dict[str, Any]:
        params = {"steamid": steamid, "include_appinfo": 1, "include_played_free_games": 1}
        data = await self.get("/IPlayerService/GetOwnedGames/v1/", params=params)
        return (data or {}).get("response") or {}

    async def get_player_achievements(self, steamid: str, appid: int) -> dict[str, Any]:
        params = {"steamid": steamid, "appid": appid}
        data = await self.get("/ISteamUserStats/GetPlayerAchievements/v1/", params=params)
        return (data or {}).get("playerstats") or {}
