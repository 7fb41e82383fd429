import math

from loguru import logger

from app.models.catalog import CatalogEntry, CompletionSummary, OwnedItem, ScoredCandidate
from app.models.filters import FilterConfig
from app.models.profile import AffinityProfile
from app.services.profile.builder import ProfileBuilder, top_played
from app.services.recommendation.constants import (
    DEFAULT_REVIEW_RATIO,
    NORMALIZATION_POOL,
    NOVELTY_CAP,
    NOVELTY_DAMPING_STANDARD,
    NOVELTY_WEIGHT_STANDARD,
    NOVELTY_WEIGHT_SURPRISE,
    SCORE_WEIGHT_CATEGORIES,
    SCORE_WEIGHT_GENRES,
    SCORE_WEIGHT_PRICE,
    SCORE_WEIGHT_REVIEW,
    SCORE_WEIGHT_TAGS,
)
from app.services.recommendation.filtering import RecommendationFiltering


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class RecommendationScoring:
    """
    Scoring primitives: weighted feature sums, price / review quality,
    overlap, deterministic novelty and percentile normalization.
    """

    @staticmethod
    def string_hash(seed: str) -> int:
        """32-bit signed rolling hash (h * 31 + code unit) over UTF-16 code units."""
        data = seed.encode("utf-16-le")
        h = 0
        for i in range(0, len(data), 2):
            unit = data[i] | (data[i + 1] << 8)
            h = (h * 31 + unit) & 0xFFFFFFFF
        return h - 0x100000000 if h & 0x80000000 else h

    @staticmethod
    def deterministic_unit(user_id: str, appid: int) -> float:
        """
        Stable pseudo-random value in [0, 1) for a (user, game) pair.

        ``abs(sin(string_hash(f"{user_id}-{appid}"))) % 1``. Same inputs always
        give the same value; no random source is involved.
        """
        return abs(math.sin(RecommendationScoring.string_hash(f"{user_id}-{appid}"))) % 1

    @staticmethod
    def review_score(game: CatalogEntry) -> float:
        ratio = game.review_ratio if game.review_ratio is not None else DEFAULT_REVIEW_RATIO
        total = game.total_reviews or 0
        volume_factor = min(1.0, math.log10(total + 1) / 3)
        return clamp((ratio - 0.5) * 2, 0, 1) * (0.5 + 0.5 * volume_factor)

    @staticmethod
    def score_parts(game: CatalogEntry, profile: AffinityProfile, price_cap: float) -> dict[str, float]:
        return {
            "tags": sum(profile.tag_weights.get(t, 0.0) for t in game.tags),
            "genres": sum(profile.genre_weights.get(g, 0.0) for g in game.genres),
            "categories": sum(profile.category_weights.get(c, 0.0) for c in game.categories),
            "price": clamp(1 - (game.price or 0) / (price_cap or 1), 0, 1),
            "review": RecommendationScoring.review_score(game),
        }

    @staticmethod
    def overlap(game: CatalogEntry, profile: AffinityProfile) -> float:
        """Share of the candidate's own tags that are among the profile's top tags."""
        tags = set(game.tags)
        common = sum(1 for t in profile.top_tags if t in tags)
        return common / max(1, len(tags))

    @staticmethod
    def novelty(user_id: str, appid: int, overlap: float, surprise: bool) -> float:
        damping = 1.0 if surprise else NOVELTY_DAMPING_STANDARD
        raw = (1 - overlap) * damping * RecommendationScoring.deterministic_unit(user_id, appid)
        weight = NOVELTY_WEIGHT_SURPRISE if surprise else NOVELTY_WEIGHT_STANDARD
        return clamp(raw, 0, NOVELTY_CAP) * weight

    @staticmethod
    def composite(parts: dict[str, float], novelty: float) -> float:
        return (
            SCORE_WEIGHT_TAGS * parts["tags"]
            + SCORE_WEIGHT_GENRES * parts["genres"]
            + SCORE_WEIGHT_CATEGORIES * parts["categories"]
            + SCORE_WEIGHT_PRICE * parts["price"]
            + SCORE_WEIGHT_REVIEW * parts["review"]
            + novelty
        )

    @staticmethod
    def normalize_percent(value: float, min_v: float, max_v: float) -> int:
        if max_v == min_v:
            return 50
        pct = (value - min_v) / (max_v - min_v) * 100
        return int(clamp(round_half_up(pct), 0, 100))


class CandidateScorer:
    """
    Filters the catalog for one player and ranks the survivors.

    Output candidates are sorted by score (descending) and carry a 0-100
    compatibility relative to the top of the pool.
    """

    def __init__(self, default_price_cap: float = 60.0):
        self.default_price_cap = default_price_cap
        self.profile_builder = ProfileBuilder()

    def score(
        self,
        catalog: list[CatalogEntry],
        owned: list[OwnedItem],
        completions: dict[int, CompletionSummary] | None = None,
        filters: FilterConfig | None = None,
        price_max: float | None = None,
        surprise: bool = False,
        user_id: str = "",
        banned_titles: list[str] | None = None,
        catalog_index: dict[int, CatalogEntry] | None = None,
    ) -> list[ScoredCandidate]:
        if not catalog:
            return []

        owned_ids, top_played_ids = RecommendationFiltering.get_exclusion_sets(owned)
        banned = RecommendationFiltering.banned_names(banned_titles)
        index = catalog_index if catalog_index is not None else {g.appid: g for g in catalog}
        profile = self.profile_builder.build(index, top_played(owned), completions)
        price_cap = price_max if price_max is not None else self.default_price_cap

        scored: list[tuple[float, float, CatalogEntry]] = []
        for game in catalog:
            if game.appid in owned_ids or game.appid in top_played_ids:
                continue
            if (game.name or "").lower() in banned:
                continue
            if not RecommendationFiltering.passes_quality_rules(game):
                continue
            if not RecommendationFiltering.matches_filters(game, filters, price_max=price_cap):
                continue
            if (game.price or 0) > price_cap:
                continue

            parts = RecommendationScoring.score_parts(game, profile, price_cap)
            overlap = RecommendationScoring.overlap(game, profile)
            novelty = RecommendationScoring.novelty(user_id, game.appid, overlap, surprise)
            scored.append((RecommendationScoring.composite(parts, novelty), overlap, game))

        if not scored:
            logger.info("No catalog entry survived filtering")
            return []

        scored.sort(key=lambda x: x[0], reverse=True)
        pool = [s for s, _, _ in scored[:NORMALIZATION_POOL]]
        min_v, max_v = min(pool), max(pool)

        logger.debug(f"Scored {len(scored)} candidates (pool min={min_v:.4f}, max={max_v:.4f})")
        return [
            ScoredCandidate(
                **game.model_dump(),
                score=score,
                overlap=overlap,
                compatibility=RecommendationScoring.normalize_percent(score, min_v, max_v),
            )
            for score, overlap, game in scored
        ]
