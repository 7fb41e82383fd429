from app.models.catalog import CatalogEntry, OwnedItem
from app.models.filters import FilterConfig, QuickTag
from app.services.recommendation.constants import (
    EXCLUDE_TOP_PLAYED,
    HORROR_KEYWORDS,
    PLAY_MODE_CATEGORIES,
    QUALITY_GATES,
    QUICK_BUDGET_LIMITS,
    QUICK_TAG_LABELS,
)


class RecommendationFiltering:
    """
    Handles exclusion sets, the review quality gate and filter matching.
    """

    @staticmethod
    def get_exclusion_sets(owned: list[OwnedItem]) -> tuple[set[int], set[int]]:
        """Return (owned appids, top played appids)."""
        owned_ids = {item.appid for item in owned}
        played = sorted(
            (item for item in owned if item.playtime_forever > 0),
            key=lambda item: item.playtime_forever,
            reverse=True,
        )
        top_played_ids = {item.appid for item in played[:EXCLUDE_TOP_PLAYED]}
        return owned_ids, top_played_ids

    @staticmethod
    def banned_names(titles: list[str] | None) -> set[str]:
        return {str(t or "").lower() for t in titles or []}

    @staticmethod
    def passes_quality_rules(game: CatalogEntry) -> bool:
        """Reject well-reviewed-enough-to-judge games with poor ratings (shovelware guard)."""
        ratio = game.review_ratio if game.review_ratio is not None else 0.0
        total = game.total_reviews or 0
        for min_reviews, min_ratio in QUALITY_GATES:
            if total >= min_reviews and ratio < min_ratio:
                return False
        return True

    @staticmethod
    def _is_horror(labels: set[str]) -> bool:
        return any(keyword in label for label in labels for keyword in HORROR_KEYWORDS)

    @staticmethod
    def matches_filters(game: CatalogEntry, filters: FilterConfig | None, price_max: float | None = None) -> bool:
        """Every active quick tag, every mode and the budget must be satisfied."""
        if filters is None:
            return True

        tags = {str(t).lower() for t in game.tags}
        categories = {str(c).lower() for c in game.categories}

        for quick in filters.quick:
            if quick == QuickTag.HORROR:
                if not RecommendationFiltering._is_horror(tags | categories):
                    return False
                continue
            label = QUICK_TAG_LABELS[quick].lower()
            if label not in tags and label not in categories:
                return False

        for mode in filters.modes:
            if PLAY_MODE_CATEGORIES[mode].lower() not in categories:
                return False

        price = game.price or 0.0
        budget = filters.budget
        if budget is None:
            return True
        if budget.kind == "quick":
            limit = QUICK_BUDGET_LIMITS.get(budget.tier) if budget.tier else None
            if limit is not None and price > limit:
                return False
        else:
            limit = budget.max if budget.max is not None else price_max
            if limit is not None and price > limit:
                return False
        return True
