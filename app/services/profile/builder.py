from loguru import logger

from app.models.catalog import CatalogEntry, CompletionSummary, OwnedItem
from app.models.profile import AffinityProfile
from app.services.profile.constants import (
    COMPLETION_BOOST,
    COMPLETION_BOOST_THRESHOLD,
    FEATURE_WEIGHT_CATEGORY,
    FEATURE_WEIGHT_GENRE,
    FEATURE_WEIGHT_TAG,
    PROFILE_TOP_PLAYED,
    TOP_TAGS_LIMIT,
)


def top_played(owned: list[OwnedItem], limit: int = PROFILE_TOP_PLAYED) -> list[OwnedItem]:
    """Owned games with some playtime, most played first."""
    played = [item for item in owned if item.playtime_forever > 0]
    return sorted(played, key=lambda item: item.playtime_forever, reverse=True)[:limit]


class ProfileBuilder:
    """
    Builds the affinity profile using additive accumulation.

    Design principles:
    - Pure accumulation: weight += item weight
    - Same weight to all metadata of an item (scaled per feature type)
    - No normalization and no persistence: the profile lives for one request
    """

    def build(
        self,
        catalog_index: dict[int, CatalogEntry],
        top_items: list[OwnedItem],
        completions: dict[int, CompletionSummary] | None = None,
    ) -> AffinityProfile:
        """
        Build an affinity profile from the most played games.

        Args:
            catalog_index: appid → CatalogEntry lookup
            top_items: most played owned items (see ``top_played``)
            completions: appid → achievement completion summary

        Returns:
            Built AffinityProfile
        """
        completions = completions or {}
        profile = AffinityProfile()
        max_playtime = max([item.playtime_forever for item in top_items] + [1])

        for item in top_items:
            data = catalog_index.get(item.appid)
            if data is None:
                continue
            weight = self._item_weight(item, completions.get(item.appid), max_playtime)
            self._accumulate(profile, data, weight)

        # Insertion order, not accumulated weight
        profile.top_tags = list(profile.tag_weights.keys())[:TOP_TAGS_LIMIT]
        logger.debug(
            f"Built affinity profile: {len(profile.tag_weights)} tags, "
            f"{len(profile.genre_weights)} genres, {len(profile.category_weights)} categories"
        )
        return profile

    @staticmethod
    def _item_weight(item: OwnedItem, completion: CompletionSummary | None, max_playtime: int) -> float:
        play_weight = item.playtime_forever / max_playtime
        boost = COMPLETION_BOOST if completion and completion.ratio >= COMPLETION_BOOST_THRESHOLD else 1.0
        return play_weight * boost

    @staticmethod
    def _accumulate(profile: AffinityProfile, data: CatalogEntry, weight: float) -> None:
        for tag in data.tags:
            profile.tag_weights[tag] = profile.tag_weights.get(tag, 0.0) + weight * FEATURE_WEIGHT_TAG
        for genre in data.genres:
            profile.genre_weights[genre] = profile.genre_weights.get(genre, 0.0) + weight * FEATURE_WEIGHT_GENRE
        for category in data.categories:
            profile.category_weights[category] = (
                profile.category_weights.get(category, 0.0) + weight * FEATURE_WEIGHT_CATEGORY
            )
