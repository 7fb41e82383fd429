import time
from collections.abc import Callable
from datetime import datetime, timezone

from loguru import logger
from pydantic import ValidationError

from app.core.cache import RedisCache, cache
from app.core.config import settings
from app.core.constants import RECOMMENDATION_CACHE_KEY, REROLL_USAGE_KEY, SEEN_TITLES_KEY
from app.core.security import stable_digest
from app.models.filters import FilterConfig
from app.models.recommendation import CachedRecommendation, RecommendedItem, RerollUsage


def cache_key(scope: str, mode: str, filters: FilterConfig | None, price_max: float | None) -> str:
    """Stable hash of a normalized request configuration."""
    config = {
        "scope": scope,
        "mode": mode,
        "filters": (filters or FilterConfig()).normalized(),
        "price_max": price_max,
    }
    return stable_digest(config, length=32)


class RecommendationCache:
    """
    Time-boxed result cache, per-key daily reroll quota and seen-title tracking.

    Entries carry their own expiry timestamp which is checked on read; the
    Redis TTL only mirrors it so stale keys get cleaned up.
    """

    def __init__(
        self,
        store: RedisCache | None = None,
        clock: Callable[[], float] = time.time,
        ttl_seconds: int | None = None,
        daily_reroll_limit: int | None = None,
    ):
        self.store = store or cache
        self.clock = clock
        self.ttl_seconds = ttl_seconds or settings.RECOMMENDATION_CACHE_TTL_SECONDS
        self.daily_reroll_limit = daily_reroll_limit or settings.REROLL_DAILY_LIMIT

    def _now_ms(self) -> float:
        return self.clock() * 1000

    def _today(self) -> str:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc).date().isoformat()

    # Result cache

    async def get(self, key: str) -> list[RecommendedItem] | None:
        redis_key = RECOMMENDATION_CACHE_KEY.format(key=key)
        raw = await self.store.get_json(redis_key)
        if not raw:
            return None
        try:
            entry = CachedRecommendation.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Failed to decode cached recommendation {key}: {e}")
            return None

        if entry.expires_at <= self._now_ms():
            logger.debug(f"Cached recommendation {key} expired")
            await self.store.delete(redis_key)
            return None
        return entry.items

    async def set(self, key: str, items: list[RecommendedItem]) -> None:
        entry = CachedRecommendation(
            key=key,
            items=items[:3],
            expires_at=self._now_ms() + self.ttl_seconds * 1000,
        )
        await self.store.set(RECOMMENDATION_CACHE_KEY.format(key=key), entry.model_dump(mode="json"), self.ttl_seconds)
        logger.debug(f"Cached recommendation {key} for {self.ttl_seconds}s")

    # Reroll quota

    def _usage_key(self, key: str, date: str) -> str:
        return REROLL_USAGE_KEY.format(key=key, date=date)

    async def reserve_reroll(self, key: str) -> RerollUsage | None:
        """
        Take one of today's reroll slots, or return None when none is left.

        The counter is incremented before any work happens so concurrent
        rerolls on the same key can never all pass. An over-limit increment is
        rolled back straight away. Redis being unreachable denies the reroll.
        """
        today = self._today()
        usage_key = self._usage_key(key, today)
        # Kept two days so a reservation taken just before midnight can still be released
        count = await self.store.incr(usage_key, 2 * 86400)
        if count is None:
            return None
        if count > self.daily_reroll_limit:
            await self.store.decr(usage_key)
            return None
        return RerollUsage(key=key, date=today, count=count)

    async def release_reroll(self, usage: RerollUsage) -> None:
        """Give back a reserved slot whose reroll produced nothing."""
        await self.store.decr(self._usage_key(usage.key, usage.date))
        logger.debug(f"Released reroll slot {usage.count} for {usage.key}")

    async def rerolls_remaining(self, key: str) -> int:
        used = await self.store.get_int(self._usage_key(key, self._today()))
        return max(0, self.daily_reroll_limit - used)

    # Seen titles

    async def get_seen_titles(self, key: str) -> list[str]:
        raw = await self.store.get_json(SEEN_TITLES_KEY.format(key=key))
        return [str(t) for t in raw] if isinstance(raw, list) else []

    async def add_seen_titles(self, key: str, titles: list[str]) -> list[str]:
        seen = await self.get_seen_titles(key)
        known = {t.lower() for t in seen}
        for title in titles:
            if title and title.lower() not in known:
                seen.append(title)
                known.add(title.lower())
        await self.store.set(SEEN_TITLES_KEY.format(key=key), seen, self.ttl_seconds)
        return seen


recommendation_cache = RecommendationCache()
