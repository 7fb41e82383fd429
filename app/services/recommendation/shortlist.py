from app.models.catalog import CatalogEntry, CompletionSummary, OwnedItem, ScoredCandidate
from app.models.filters import FilterConfig
from app.models.ranking import LlmCandidate, LlmUserProfile, PlaytimeExample
from app.services.profile.builder import ProfileBuilder, top_played
from app.services.recommendation.constants import (
    PLAY_MODE_CATEGORIES,
    QUICK_TAG_LABELS,
    SHORTLIST_LIMIT,
    SHORTLIST_MAX_GENRES,
    SHORTLIST_MAX_TAGS,
)
from app.services.recommendation.scoring import round_half_up

PROFILE_MAX_EXAMPLES = 8
EXAMPLE_MAX_TAGS = 5
FAV_TAGS_LIMIT = 8

BUDGET_TIER_LABELS = {"free": "free games only", "10": "10€ or less", "20": "20€ or less"}


def to_llm_candidates(candidates: list[ScoredCandidate], limit: int = SHORTLIST_LIMIT) -> list[LlmCandidate]:
    """Pure projection of scored candidates into the compact ranking payload."""
    return [
        LlmCandidate(
            appid=c.appid,
            name=c.name,
            tags=list(c.tags[:SHORTLIST_MAX_TAGS]),
            genres=list(c.genres[:SHORTLIST_MAX_GENRES]),
            price=c.price or 0,
            review_ratio=c.review_ratio,
            total_reviews=c.total_reviews or 0,
            compatibility_hint=c.compatibility,
        )
        for c in candidates[:limit]
    ]


def build_user_profile(
    catalog_index: dict[int, CatalogEntry],
    owned: list[OwnedItem],
    completions: dict[int, CompletionSummary] | None,
    filters: FilterConfig | None,
    price_max: float | None,
    max_examples: int = PROFILE_MAX_EXAMPLES,
) -> LlmUserProfile:
    """Condensed profile for the ranking model: dominant tags and most played examples."""
    completions = completions or {}
    played = top_played(owned)
    profile = ProfileBuilder().build(catalog_index, played, completions)

    examples = []
    for item in played[:max_examples]:
        data = catalog_index.get(item.appid)
        completion = completions.get(item.appid)
        examples.append(
            PlaytimeExample(
                appid=item.appid,
                name=(data.name if data else None) or item.name or f"App {item.appid}",
                hours=round_half_up(item.playtime_forever / 60),
                tags=list(data.tags[:EXAMPLE_MAX_TAGS]) if data else [],
                achievement_ratio=completion.ratio if completion else None,
            )
        )

    return LlmUserProfile(
        playtime_top=examples,
        fav_tags=profile.get_top_tags_by_weight(FAV_TAGS_LIMIT),
        filters=filters.normalized() if filters else None,
        budget_max=price_max,
    )


def summarize_filters(filters: FilterConfig | None, price_max: float | None) -> str:
    """Human readable filter context for the ranking prompt."""
    lines = []
    if filters and filters.quick:
        lines.append("Wanted tags: " + ", ".join(QUICK_TAG_LABELS[q] for q in filters.quick))
    if filters and filters.modes:
        lines.append("Play modes: " + ", ".join(PLAY_MODE_CATEGORIES[m] for m in filters.modes))
    budget = filters.budget if filters else None
    if budget and budget.kind == "quick" and budget.tier:
        lines.append(f"Budget: {BUDGET_TIER_LABELS[budget.tier]}")
    elif budget and budget.kind == "custom" and budget.max is not None:
        lines.append(f"Budget: {budget.max:g}€ max")
    elif price_max is not None:
        lines.append(f"Budget: {price_max:g}€ max")
    return "\n".join(lines)
