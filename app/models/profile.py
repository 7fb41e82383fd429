from pydantic import BaseModel, Field


class AffinityProfile(BaseModel):
    """
    Weighted tag / genre / category affinities derived from playtime and
    achievement completion.

    Rebuilt for every request and discarded afterwards; never persisted.
    """

    tag_weights: dict[str, float] = Field(default_factory=dict, description="Tag label → accumulated weight")
    genre_weights: dict[str, float] = Field(default_factory=dict, description="Genre label → accumulated weight")
    category_weights: dict[str, float] = Field(
        default_factory=dict, description="Category label → accumulated weight"
    )
    top_tags: list[str] = Field(default_factory=list, description="First distinct tags seen, insertion order")

    def get_top_tags_by_weight(self, limit: int = 8) -> list[str]:
        """Tags sorted by accumulated weight (used to brief the ranking model)."""
        return [tag for tag, _ in sorted(self.tag_weights.items(), key=lambda x: x[1], reverse=True)[:limit]]
