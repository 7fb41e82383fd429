import re

from loguru import logger

from app.core.config import settings
from app.core.exceptions import InputValidationError, ReconciliationEmptyError, UpstreamUnavailableError
from app.core.security import redact_id
from app.models.catalog import CompletionSummary, OwnedItem, ScoredCandidate
from app.models.recommendation import RecommendationRequest, RecommendationResult, RecommendedItem
from app.services.catalog import CatalogService, catalog_service
from app.services.history import HistoryService, history_service
from app.services.llm.ranker import PROMPT_MAX_GAMES, RankingService
from app.services.profile.builder import top_played
from app.services.recommendation.constants import DIVERSIFY_POOL, SHORTLIST_LIMIT
from app.services.recommendation.diversifier import Diversifier
from app.services.recommendation.matching import reconcile_id_picks, reconcile_title_picks, to_recommended
from app.services.recommendation.scoring import CandidateScorer
from app.services.recommendation.shortlist import build_user_profile, summarize_filters, to_llm_candidates
from app.services.recommendation_cache import RecommendationCache, cache_key, recommendation_cache
from app.services.steam.service import SteamLibraryService, library_service

STEAMID_PATTERN = re.compile(r"^\d{5,}$")


class RecommendationEngine:
    """
    Main orchestration logic for one recommend / surprise / reroll action.

    Steps:
        1. Cache lookup (or reroll quota check)
        2. Steam library + achievement completion of the most played games
        3. Candidate scoring against the catalog
        4. Ranking model picks (assisted) or local diversification
        5. Cache, seen titles, reroll counter and history bookkeeping
    """

    def __init__(
        self,
        catalog: CatalogService | None = None,
        library: SteamLibraryService | None = None,
        ranking: RankingService | None = None,
        cache: RecommendationCache | None = None,
        history: HistoryService | None = None,
        scorer: CandidateScorer | None = None,
        diversifier: Diversifier | None = None,
        variant: str | None = None,
    ):
        self.catalog = catalog or catalog_service
        self.library = library or library_service
        self.ranking = ranking
        self.cache = cache or recommendation_cache
        self.history = history or history_service
        self.scorer = scorer or CandidateScorer(default_price_cap=settings.DEFAULT_PRICE_CEILING)
        self.diversifier = diversifier or Diversifier()
        self.variant = variant or settings.RANKING_VARIANT

    async def recommend(self, request: RecommendationRequest) -> RecommendationResult:
        steamid = (request.steamid or "").strip()
        if not STEAMID_PATTERN.match(steamid):
            raise InputValidationError("Invalid SteamID64", reason="steamid must be a SteamID64 (5+ digits)")

        log_prefix = f"[{redact_id(steamid)}]"
        key = cache_key(steamid, request.mode, request.filters, request.price_max)

        reservation = None
        if request.reroll:
            reservation = await self.cache.reserve_reroll(key)
            if reservation is None:
                logger.info(f"{log_prefix} Reroll quota exhausted for {key}")
                return RecommendationResult(
                    status="quota_exceeded",
                    rerolls_remaining=0,
                    message="Daily reroll limit reached for this configuration",
                )
            banned_titles = await self.cache.get_seen_titles(key)
        else:
            cached = await self.cache.get(key)
            if cached:
                logger.info(f"{log_prefix} Serving cached recommendation {key}")
                return RecommendationResult(
                    items=cached,
                    cached=True,
                    source="cache",
                    rerolls_remaining=await self.cache.rerolls_remaining(key),
                )
            banned_titles = []

        # A reroll only counts when it delivers something
        items = []
        try:
            items, source = await self._run_pipeline(steamid, request, banned_titles)
        finally:
            if reservation is not None and not items:
                await self.cache.release_reroll(reservation)

        if not items:
            return RecommendationResult(
                status="empty",
                source=source,
                rerolls_remaining=await self.cache.rerolls_remaining(key),
                message="No recommendation matches these filters. Try fewer filters or a larger budget.",
            )

        await self.cache.set(key, items)
        await self.cache.add_seen_titles(key, [item.name for item in items])
        await self.history.save(request, items, source)

        logger.info(f"{log_prefix} Recommended {[item.appid for item in items]} via {source}")
        return RecommendationResult(
            items=items,
            source=source,
            rerolls_remaining=await self.cache.rerolls_remaining(key),
        )

    async def _run_pipeline(
        self, steamid: str, request: RecommendationRequest, banned_titles: list[str]
    ) -> tuple[list[RecommendedItem], str]:
        catalog = self.catalog.load()
        catalog_index = self.catalog.get_index()

        owned = await self.library.get_owned(steamid)
        if not owned:
            raise UpstreamUnavailableError(
                "Steam library empty or private", reason="library empty or private. Make your library public."
            )

        played = top_played(owned)
        completions = await self.library.get_completions(steamid, played, settings.COMPLETION_FETCH_LIMIT)

        scored = self.scorer.score(
            catalog,
            owned,
            completions=completions,
            filters=request.filters,
            price_max=request.price_max,
            surprise=request.surprise,
            user_id=request.user_id,
            banned_titles=banned_titles,
            catalog_index=catalog_index,
        )
        if not scored:
            logger.info(f"[{redact_id(steamid)}] No candidate survived scoring")
            return [], "local"

        if self.ranking is None:
            picks = self.diversifier.pick(scored[:DIVERSIFY_POOL], surprise=request.surprise)
            return [to_recommended(c) for c in picks], "local"

        try:
            items = await self._rank(scored, request, owned, completions, banned_titles)
        except ReconciliationEmptyError as e:
            logger.warning(f"[{redact_id(steamid)}] Ranking picks did not match the catalog: {e}")
            return [], "ranker"
        return items, "ranker"

    async def _rank(
        self,
        scored: list[ScoredCandidate],
        request: RecommendationRequest,
        owned: list[OwnedItem],
        completions: dict[int, CompletionSummary],
        banned_titles: list[str],
    ) -> list[RecommendedItem]:
        catalog_index = self.catalog.get_index()

        if self.variant == "candidates":
            shortlist = scored[:SHORTLIST_LIMIT]
            profile = build_user_profile(catalog_index, owned, completions, request.filters, request.price_max)
            picks = await self.ranking.rank_candidates(profile, to_llm_candidates(shortlist))
            return reconcile_id_picks(picks, shortlist)

        profile = build_user_profile(
            catalog_index, owned, completions, request.filters, request.price_max, max_examples=PROMPT_MAX_GAMES
        )
        picks = await self.ranking.rank_titles(
            profile.playtime_top,
            filters_summary=summarize_filters(request.filters, request.price_max),
            banned_titles=banned_titles,
            surprise=request.surprise,
        )
        return reconcile_title_picks(picks, scored)
