import math
from typing import Any

import httpx
from async_lru import alru_cache
from loguru import logger

from app.core.config import settings
from app.core.exceptions import UpstreamUnavailableError
from app.core.security import redact_id
from app.models.catalog import CompletionSummary, OwnedItem
from app.services.steam.client import SteamClient


def summarize_achievements(playerstats: dict[str, Any]) -> CompletionSummary:
    achievements = playerstats.get("achievements") or []
    total = len(achievements)
    unlocked = sum(1 for a in achievements if isinstance(a, dict) and a.get("achieved") == 1)
    if not total:
        return CompletionSummary.empty()
    ratio = int(math.floor(unlocked / total * 100 + 0.5))
    return CompletionSummary(total=total, unlocked=unlocked, ratio=ratio)


class SteamLibraryService:
    """
    Usage history of a Steam account: owned games with playtime and
    achievement completion of the most played ones.
    """

    def __init__(self, client: SteamClient | None = None):
        self.client = client or SteamClient()

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.close()

    @alru_cache(maxsize=1000, ttl=settings.STEAM_CACHE_TTL_SECONDS)
    async def fetch_owned_games(self, steamid: str) -> dict[str, Any]:
        """Raw ``GetOwnedGames`` response body."""
        try:
            return await self.client.get_owned_games(steamid)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamUnavailableError(
                f"Steam owned games failed: {status}", reason=f"Steam owned games failed: {status} {e.response.text}"
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise UpstreamUnavailableError(f"Steam owned games failed: {e}") from e

    @alru_cache(maxsize=5000, ttl=settings.STEAM_CACHE_TTL_SECONDS)
    async def fetch_achievements(self, steamid: str, appid: int) -> dict[str, Any]:
        """Raw ``GetPlayerAchievements`` playerstats."""
        try:
            return await self.client.get_player_achievements(steamid, appid)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamUnavailableError(
                f"Steam achievements failed: {status}",
                reason=f"Steam achievements failed: {status} {e.response.text}",
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise UpstreamUnavailableError(f"Steam achievements failed: {e}") from e

    async def get_owned(self, steamid: str) -> list[OwnedItem]:
        data = await self.fetch_owned_games(steamid)
        items = []
        for game in data.get("games") or []:
            if not isinstance(game, dict) or game.get("appid") is None:
                continue
            items.append(
                OwnedItem(
                    appid=int(game["appid"]),
                    playtime_forever=max(0, int(game.get("playtime_forever") or 0)),
                    name=game.get("name"),
                )
            )
        logger.info(f"[{redact_id(steamid)}] Steam library: {len(items)} owned games")
        return items

    async def get_completion(self, steamid: str, appid: int) -> CompletionSummary:
        return summarize_achievements(await self.fetch_achievements(steamid, appid))

    async def get_completions(
        self, steamid: str, items: list[OwnedItem], limit: int | None = None
    ) -> dict[int, CompletionSummary]:
        """
        Completion summaries for the first ``limit`` items, fetched one after the other.

        A failed fetch only degrades that game to an empty summary.
        """
        limit = limit or settings.COMPLETION_FETCH_LIMIT
        results: dict[int, CompletionSummary] = {}
        for item in items[:limit]:
            try:
                results[item.appid] = await self.get_completion(steamid, item.appid)
            except UpstreamUnavailableError as e:
                logger.warning(f"[{redact_id(steamid)}] Achievements unavailable for {item.appid}: {e}")
                results[item.appid] = CompletionSummary.empty()
        return results


library_service = SteamLibraryService()
