import asyncio

import pytest

from app.models.filters import Budget, FilterConfig, PlayMode, QuickTag
from app.services.recommendation.matching import to_recommended
from app.services.recommendation_cache import RecommendationCache, cache_key
from tests.conftest import make_scored


@pytest.fixture
def reco_cache(store, clock) -> RecommendationCache:
    return RecommendationCache(store=store, clock=clock, ttl_seconds=86400, daily_reroll_limit=3)


@pytest.fixture
def items():
    return [to_recommended(make_scored(i, ["Indie"], name=f"Game {i}"), reason="r") for i in (1, 2, 3)]


class TestCacheKey:
    def test_order_independent(self):
        a = FilterConfig(quick=[QuickTag.FPS, QuickTag.COOP], modes=[PlayMode.SOLO, PlayMode.ONLINE])
        b = FilterConfig(quick=[QuickTag.COOP, QuickTag.FPS], modes=[PlayMode.ONLINE, PlayMode.SOLO])
        assert cache_key("76561198000000000", "standard", a, 40) == cache_key("76561198000000000", "standard", b, 40)

    def test_every_dimension_matters(self):
        base = cache_key("123456", "standard", FilterConfig(), None)
        assert base != cache_key("123457", "standard", FilterConfig(), None)
        assert base != cache_key("123456", "surprise", FilterConfig(), None)
        assert base != cache_key("123456", "standard", FilterConfig(), 20)
        assert base != cache_key("123456", "standard", FilterConfig(budget=Budget(kind="quick", tier="free")), None)
        assert base == cache_key("123456", "standard", None, None)


class TestResultCache:
    async def test_round_trip(self, reco_cache, items):
        await reco_cache.set("k", items)
        cached = await reco_cache.get("k")
        assert [i.appid for i in cached] == [1, 2, 3]
        assert cached[0].reason == "r"

    async def test_expires_after_ttl(self, reco_cache, items, clock):
        await reco_cache.set("k", items)
        clock.advance(86400 - 1)
        assert await reco_cache.get("k") is not None
        clock.advance(2)
        assert await reco_cache.get("k") is None

    async def test_miss(self, reco_cache):
        assert await reco_cache.get("unknown") is None

    async def test_corrupt_entry_is_a_miss(self, reco_cache, store):
        await store.set("reco:cache:k", {"unexpected": True})
        assert await reco_cache.get("k") is None


class TestRerollQuota:
    async def test_fourth_reroll_denied(self, reco_cache):
        for _ in range(3):
            assert await reco_cache.reserve_reroll("k") is not None

        assert await reco_cache.reserve_reroll("k") is None
        assert await reco_cache.rerolls_remaining("k") == 0

    async def test_concurrent_rerolls_share_three_slots(self, reco_cache):
        reservations = await asyncio.gather(*(reco_cache.reserve_reroll("k") for _ in range(5)))

        granted = [r for r in reservations if r is not None]
        assert len(granted) == 3
        assert sorted(r.count for r in granted) == [1, 2, 3]
        assert await reco_cache.rerolls_remaining("k") == 0

    async def test_denied_attempts_do_not_consume(self, reco_cache, store):
        for _ in range(5):
            await reco_cache.reserve_reroll("k")
        assert await store.get_int("reco:reroll:k:2023-11-14") == 3

    async def test_release_gives_the_slot_back(self, reco_cache):
        usage = await reco_cache.reserve_reroll("k")
        await reco_cache.release_reroll(usage)
        assert await reco_cache.rerolls_remaining("k") == 3

    async def test_new_day_resets(self, reco_cache, clock):
        for _ in range(3):
            await reco_cache.reserve_reroll("k")
        clock.advance(86400)

        assert await reco_cache.rerolls_remaining("k") == 3
        assert await reco_cache.reserve_reroll("k") is not None

    async def test_quota_is_per_key(self, reco_cache):
        for _ in range(3):
            await reco_cache.reserve_reroll("a")
        assert await reco_cache.reserve_reroll("b") is not None

    async def test_unreachable_store_denies(self, clock):
        class DownStore:
            async def incr(self, key, ttl):
                return None

        assert await RecommendationCache(store=DownStore(), clock=clock).reserve_reroll("k") is None


class TestSeenTitles:
    async def test_append_without_duplicates(self, reco_cache):
        await reco_cache.add_seen_titles("k", ["Hades", "Celeste"])
        seen = await reco_cache.add_seen_titles("k", ["HADES", "Hollow Knight", ""])

        assert seen == ["Hades", "Celeste", "Hollow Knight"]
        assert await reco_cache.get_seen_titles("k") == seen
