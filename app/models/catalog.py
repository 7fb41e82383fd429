from pydantic import BaseModel, ConfigDict, Field, field_validator


class CatalogEntry(BaseModel):
    """A Steam store entry from the catalog dataset. Immutable reference data."""

    model_config = ConfigDict(frozen=True)

    appid: int
    name: str
    price: float = Field(default=0.0, ge=0)
    tags: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    review_ratio: float | None = None
    total_reviews: int = 0
    header_image: str = ""
    store_url: str = ""


class ScoredCandidate(CatalogEntry):
    """CatalogEntry plus the scores computed against one user's affinity profile."""

    score: float = 0.0
    overlap: float = Field(default=0.0, ge=0, le=1)
    compatibility: int = 0

    @field_validator("compatibility", mode="before")
    @classmethod
    def _clamp_compatibility(cls, value) -> int:
        return max(0, min(100, int(round(float(value or 0)))))


class OwnedItem(BaseModel):
    appid: int
    playtime_forever: int = Field(default=0, ge=0, description="Minutes played")
    name: str | None = None


class CompletionSummary(BaseModel):
    """Achievement completion of one owned game. ``ratio`` is a 0-100 percentage."""

    total: int = 0
    unlocked: int = 0
    ratio: int = Field(default=0, ge=0, le=100)

    @classmethod
    def empty(cls) -> "CompletionSummary":
        return cls(total=0, unlocked=0, ratio=0)


def format_price(euros: float) -> str:
    if euros <= 0:
        return "Free"
    return f"{euros:.2f}€"
